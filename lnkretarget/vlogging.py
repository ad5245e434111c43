'''
vlogging
========

This module forwards everything from logging, with the addition of levels LOUD
and SILENT, and all loggers from getLogger are given the `loud` method.

Rewriting shortcuts on somebody else's machine is the kind of thing you want
a paper trail for, so the main_decorator also understands --log-file, which
writes every debug line to a file regardless of what the console shows.
'''
from logging import *

_getLogger = getLogger

# Python gives the root logger a level of WARNING, which prevents the handlers
# from receiving lower level messages. The root logger itself has no level and
# the handlers choose what they want.
root = getLogger()
root.setLevel(NOTSET)

LOUD = 1
SILENT = 99999999999

LOG_FORMAT = '{levelname}:{name}:{message}'
LOG_FILE_FORMAT = '{asctime} {levelname}:{name}:{message}'

BETTERHELP_EPILOGUE = '''
All commands accept the following logging arguments:

--loud, --debug, --warning, --quiet, --silent
    Set the console log level. The default is info.

--log-file X
    Also write a debug level log to file X. Existing contents are kept and
    the new lines are appended.
'''

def add_loud(log):
    '''
    Add the `loud` method to the given logger.
    '''
    def loud(self, message, *args, **kwargs):
        if self.isEnabledFor(LOUD):
            self._log(LOUD, message, args, **kwargs)

    addLevelName(LOUD, 'LOUD')
    log.loud = loud.__get__(log, log.__class__)

def add_file_handler(filepath, level=DEBUG):
    handler = FileHandler(filepath, mode='a', encoding='utf-8')
    handler.setFormatter(Formatter(LOG_FILE_FORMAT, style='{'))
    handler.setLevel(level)
    root.addHandler(handler)
    return handler

def basic_config(level):
    '''
    This adds a handler with the given level to the root logger, but only
    if it has no stream handlers yet.
    '''
    if any(type(handler) is StreamHandler for handler in root.handlers):
        return

    handler = StreamHandler()
    handler.setFormatter(Formatter(LOG_FORMAT, style='{'))
    handler.setLevel(level)
    root.addHandler(handler)

def get_level_by_argv(argv):
    '''
    If any of the following arguments are present in argv, return the
    corresponding log level along with a new copy of argv that has had the
    argument string removed.

    --loud: LOUD
    --debug: DEBUG
    --warning: WARNING
    --quiet: ERROR
    --silent: SILENT
    none of the above: INFO
    '''
    argv = argv[:]

    def tryremove(lst, item):
        try:
            lst.remove(item)
            return True
        except ValueError:
            return False

    if tryremove(argv, '--loud'):
        level = LOUD
    elif tryremove(argv, '--debug'):
        level = DEBUG
    elif tryremove(argv, '--warning'):
        level = WARNING
    elif tryremove(argv, '--quiet'):
        level = ERROR
    elif tryremove(argv, '--silent'):
        level = SILENT
    else:
        level = INFO

    return (level, argv)

def get_log_file_by_argv(argv):
    '''
    Return the value of --log-file, or None, along with a new copy of argv
    that has had the argument and its value removed.
    '''
    argv = argv[:]
    for flag in ('--log-file', '--log_file'):
        if flag not in argv:
            continue
        index = argv.index(flag)
        try:
            filepath = argv[index + 1]
        except IndexError:
            raise ValueError(f'{flag} needs a filepath.')
        del argv[index:index + 2]
        return (filepath, argv)
    return (None, argv)

def get_logger(name=None, main_fallback=None):
    '''
    When running a module directly its __name__ is "__main__", so main_fallback
    is used to present the preferred name in that case.
    '''
    if name == '__main__' and main_fallback is not None:
        name = main_fallback
    log = _getLogger(name)
    add_loud(log)
    return log

getLogger = get_logger

log = get_logger(__name__)

def main_decorator(main):
    '''
    Add this decorator to the application's main function to set the log
    handler levels from argv. This allows --debug, --quiet, --log-file etc.
    without making any changes to the argparser.
    '''
    # Imported here because betterhelp logs through this module.
    from lnkretarget import betterhelp
    betterhelp.HELPTEXT_EPILOGUES.add(BETTERHELP_EPILOGUE)

    def wrapped(argv):
        try:
            argv = main_level_by_argv(argv)
        except (OSError, ValueError) as exc:
            log.error('Could not set up logging: %s', exc)
            return 1
        return main(argv)
    return wrapped

def main_level_by_argv(argv):
    '''
    Put a console handler on the root logger with a level set by the flags in
    argv, and a file handler if --log-file was given, then return the rest of
    argv for the argparser.
    '''
    (level, argv) = get_level_by_argv(argv)
    basic_config(level)

    (log_file, argv) = get_log_file_by_argv(argv)
    if log_file is not None:
        add_file_handler(log_file)

    return argv
