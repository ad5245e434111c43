'''
This module lets list-style arguments like --hosts and --users come from
somewhere other than the command line itself.

!i reads lines from stdin, !c reads the clipboard, and an existing filepath
is read as a text file with one entry per line. Anything else is taken
literally. So a site's host list can live in a file, or be piped in from
another inventory tool:

> get_workstations | lnkretarget retarget --hosts !i ...
'''
# import pyperclip moved to stay lazy.
import os
import sys

CLIPBOARD_STRINGS = ['!c', '!clip', '!clipboard']
INPUT_STRINGS = ['!i', '!in', '!input', '!stdin']
EOF = '\x1a'

def ctrlc_return1(function):
    '''
    Apply this decorator to the argparse gateways or main function, and if the
    user presses ctrl+c then the gateway will return 1 as its status code
    without the stacktrace appearing.
    '''
    def wrapped(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except KeyboardInterrupt:
            stderr()
            stderr('Interrupted.')
            return 1
    return wrapped

def _multi_line_input():
    while True:
        line = sys.stdin.readline()
        parts = line.split(EOF)
        line = parts[0]
        has_eof = len(parts) > 1

        # An empty line here means EOF was the first character, not that the
        # user submitted a blank line, which would still contain \n.
        if line == '':
            break

        line = line.rstrip('\n')
        yield line

        if has_eof:
            break

def multi_line_input():
    '''
    Return the lines of input from the user, until they submit EOF.
    EOF is usually Ctrl+D on linux and Ctrl+Z on windows.
    '''
    return list(_multi_line_input())

def input(arg):
    '''
    Resolve an argument into a list of stripped, non-blank lines.

    If the arg is in CLIPBOARD_STRINGS, the contents of the clipboard are taken.
    If the arg is in INPUT_STRINGS, input is read from stdin.
    If the arg is the path to an existing file, the file is read as utf-8 text.
    If none of the above, then the argument string is taken literally.

    Resolution is not recursive: if the clipboard contains the name of a file,
    it won't be read.
    '''
    if not isinstance(arg, str):
        raise TypeError(f'arg should be {str}, not {type(arg)}.')

    arg_lower = arg.lower()

    if arg_lower in INPUT_STRINGS:
        lines = multi_line_input()

    elif arg_lower in CLIPBOARD_STRINGS:
        import pyperclip
        lines = pyperclip.paste().splitlines()

    elif os.path.isfile(arg):
        with open(arg, 'r', encoding='utf-8') as handle:
            lines = handle.read().splitlines()

    else:
        lines = [arg]

    lines = (line.strip() for line in lines)
    return [line for line in lines if line]

def input_many(args):
    '''
    Given a list of input arguments, return the input() results for all of
    them as one list. Useful with argparse nargs='+' where each arg might be
    a string, a file, !i or !c.
    '''
    if isinstance(args, str):
        return input(args)

    results = []
    for arg in args:
        results.extend(input(arg))
    return results

def output(stream, line, *, end):
    line = str(line)
    stream.write(line)
    if not line.endswith(end):
        stream.write(end)
    if stream.isatty():
        stream.flush()

def stdout(line='', end='\n'):
    # In pythonw, stdout is None.
    if sys.stdout is not None:
        output(sys.stdout, line, end=end)

def stderr(line='', end='\n'):
    # In pythonw, stderr is None.
    if sys.stderr is not None:
        output(sys.stderr, line, end=end)

# In pythonw, stdin and stdout are None.
def stdin_tty():
    if sys.stdin is not None and sys.stdin.isatty():
        return sys.stdin

def stdout_tty():
    if sys.stdout is not None and sys.stdout.isatty():
        return sys.stdout

def stderr_tty():
    if sys.stderr is not None and sys.stderr.isatty():
        return sys.stderr
