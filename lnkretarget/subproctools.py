import os
import subprocess

from lnkretarget import vlogging

log = vlogging.getLogger(__name__)

def quote(arg):
    if os.name == 'nt':
        # If the command contains comma, semicolon, or equals, only the left
        # half is considered the command and the rest is considered the first
        # argument.
        # Ampersand, pipe, and caret are process flow and special escape.
        # Quotes inside quotes must be doubled up.
        if arg == '' or any(c.isspace() for c in arg) or any(c in arg for c in [',', ';', '=', '&', '|', '^', '"']):
            arg = arg.replace('"', '""')
            arg = f'"{arg}"'
        return arg
    else:
        # Semicolon is command delimiter.
        # Equals assigns shell variables.
        # A single quote ends the quoted string, so it is closed, escaped,
        # and reopened.
        if arg == '' or any(c.isspace() for c in arg) or any(c in arg for c in [';', '=', '&', '|', "'"]):
            arg = arg.replace("'", "'\\''")
            arg = f"'{arg}'"
        return arg

def format_command(command):
    cmd = [quote(x) for x in command]
    cmd = ' '.join(cmd)
    cmd = cmd.strip()
    return cmd

def fill_command(command, **fields):
    '''
    Fill {placeholders} in each argument of a configured command template,
    e.g. ['reg', 'query', '\\\\{host}\\HKLM\\...'] with host='pc01'.
    '''
    return [arg.format(**fields) for arg in command]

def run(command, *, timeout=None):
    '''
    Run the command without a shell and return its decoded stdout.

    Raises subprocess.CalledProcessError for a non-zero exit status,
    subprocess.TimeoutExpired if it takes longer than timeout seconds, and
    OSError if the program could not be started.
    '''
    log.debug('Running %s', format_command(command))
    process = subprocess.run(
        command,
        capture_output=True,
        check=True,
        text=True,
        errors='replace',
        timeout=timeout,
    )
    log.loud('Output of %s:\n%s', command[0], process.stdout)
    return process.stdout
