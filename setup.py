import setuptools

setuptools.setup(
    name='lnkretarget',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    version='0.1.0',
    description='Point Windows shortcuts in user profiles at a new target',
    long_description=open('README.md', 'r').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.8',
    install_requires=[
        'pyperclip',
        'pywin32;platform_system=="Windows"',
        'winshell;platform_system=="Windows"',
    ],
    extras_require={
        'color': ['colorama'],
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'lnkretarget=lnkretarget.retarget:entrypoint',
        ],
    },
)
