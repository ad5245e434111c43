'''
Helptext for lnkretarget's argparsers.

argparse's own help is serviceable, but for a tool that an administrator runs
once a year it is worth having the description, the invocation, every
argument, and some examples in one readable page. Argument names are
colorized with colorama when it is installed and both stdout and stderr are
terminals. Set NO_COLOR to turn that off.
'''
import argparse
try:
    import colorama
except ImportError:
    colorama = None
import os
import re
import sys
import textwrap

from lnkretarget import pipeable
from lnkretarget import vlogging

log = vlogging.get_logger(__name__)

# The presence of any of these strings in argv will trigger the helptext.
# > lnkretarget --help
# > lnkretarget retarget --help
HELP_ARGS = {'-h', '--help'}

# The command name can be any of these to trigger the helptext.
HELP_COMMANDS = {'help', '-h', '--help'}

# Modules can add additional helptexts to this set, and they will appear
# after the program's main docstring is shown. vlogging uses it to explain
# --debug, --log-file and friends, which the argparsers never see.
HELPTEXT_EPILOGUES = set()

class Colors:
    def __init__(self, enabled):
        if enabled:
            self.named = colorama.Style.BRIGHT + colorama.Fore.GREEN
            self.flag = colorama.Style.BRIGHT + colorama.Fore.MAGENTA
            self.command = colorama.Style.BRIGHT + colorama.Fore.YELLOW
            self.reset = colorama.Style.RESET_ALL
            self.required_asterisk = colorama.Style.BRIGHT + colorama.Fore.RED + '(*)' + colorama.Style.RESET_ALL
        else:
            self.named = ''
            self.flag = ''
            self.command = ''
            self.reset = ''
            self.required_asterisk = '(*)'

# INTERNALS
################################################################################

def can_use_bare(parser) -> bool:
    '''
    Return true if the given parser has no required arguments, ie can run bare.
    '''
    has_func = bool(parser.get_default('func'))
    has_required_args = any(action.required for action in parser._actions)
    return has_func and not has_required_args

def equals_header(text):
    '''
    Sample text
    ===========
    '''
    return text + '\n' + ('=' * len(text))

def get_program_name():
    program_name = os.path.basename(sys.argv[0])
    program_name = re.sub(r'\.pyw?$', '', program_name)
    return program_name

def get_subparser_action(parser):
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return action
    return None

def get_subparsers(parser):
    '''
    Return a dictionary mapping subparsers to a list of their aliases,
    i.e. {parser: [names]}
    '''
    action = get_subparser_action(parser)
    if action is None:
        return {}

    subparsers = {}
    for (sp_name, sp) in action.choices.items():
        subparsers.setdefault(sp, []).append(sp_name)
    return subparsers

def listget(li, index, fallback=None):
    try:
        return li[index]
    except IndexError:
        return fallback

def use_colors():
    # Even though this text is going out on stderr, we only colorize it if
    # both stdout and stderr are tty because as soon as pipe buffers are
    # involved things start to get weird.
    if os.environ.get('NO_COLOR', None) is not None:
        return False
    if colorama is None:
        return False
    if not (pipeable.stdout_tty() and pipeable.stderr_tty()):
        return False
    colorama.init()
    return True

def render_nargs(argname, nargs):
    if nargs == '+':
        return f'{argname} [{argname}, ...]'
    return argname

def make_helptext(
        parser,
        *,
        all_command_names=None,
        command_name=None,
        do_colors=False,
        do_headline=True,
        full_subparsers=False,
        program_name=None,
    ):
    color = Colors(do_colors)

    if program_name is None:
        program_name = get_program_name()

    if command_name is None:
        invoke_name = program_name
    else:
        invoke_name = f'{program_name} {color.command}{command_name}{color.reset}'

    if all_command_names is None:
        all_command_names = set()

    # GATHER UP ARGUMENT TYPES
    # Classify the parser's actions into named and flag arguments, which are
    # rendered and colorized differently.

    all_named_names = set()
    all_flags_names = set(HELP_ARGS)
    main_invocation = [invoke_name]
    named_actions = []
    required_named_actions = []
    optional_named_actions = []
    flag_types = {argparse._StoreTrueAction, argparse._StoreFalseAction, argparse._StoreConstAction}
    flag_actions = []

    for action in parser._actions:
        if type(action) is argparse._HelpAction:
            continue

        if type(action) is argparse._SubParsersAction:
            all_command_names.update(action.choices.keys())
            continue

        if type(action) is argparse._StoreAction and action.option_strings:
            named_actions.append(action)
            if action.required:
                required_named_actions.append(action)
            else:
                optional_named_actions.append(action)
            all_named_names.update(action.option_strings)
        elif type(action) in flag_types:
            flag_actions.append(action)
            all_flags_names.update(action.option_strings)
        else:
            raise TypeError(f'betterhelp doesn\'t know what to do with {action}.')

    # COLORIZE ARGUMENT INVOCATIONS
    # An argument called --hosts with nargs=+ is shown as
    # `--hosts hosts [hosts, ...]`. Required arguments go into the main
    # invocation, the rest wait for the full argument list.

    action_invocations = {}
    for action in named_actions:
        action_invocations[action] = []
        for alias in action.option_strings:
            if action.metavar is not None:
                argname = action.metavar
            elif action.type is None:
                argname = action.dest
            else:
                argname = action.type.__name__

            inv = render_nargs(argname, action.nargs)
            inv = f'{color.named}{alias} {inv}{color.reset}'
            action_invocations[action].append(inv)

    for action in required_named_actions:
        main_invocation.append(action_invocations[action][0])

    if optional_named_actions:
        main_invocation.append(f'{color.named}[options]{color.reset}')

    for action in flag_actions:
        action_invocations[action] = [f'{color.flag}{alias}{color.reset}' for alias in action.option_strings]

    if flag_actions:
        main_invocation.append(f'{color.flag}[flags]{color.reset}')

    # COLORIZE ARGUMENT NAMES THAT APPEAR IN OTHER TEXTS
    # This makes it easy to see when one argument has an influence on another.

    def colorize_names(text):
        if not do_colors:
            return text
        for command in all_command_names:
            text = re.sub(rf'((?:^|\s){re.escape(command)}(?:\b))', rf'{color.command}\1{color.reset}', text)
        for named in all_named_names:
            text = re.sub(rf'((?:^|\s){re.escape(named)}(?:\b))', rf'{color.named}\1{color.reset}', text)
        for flag in all_flags_names:
            text = re.sub(rf'((?:^|\s){re.escape(flag)}(?:\b))', rf'{color.flag}\1{color.reset}', text)
        return text

    # PUTTING TOGETHER PROGRAM DESCRIPTION & ARGUMENT HELPS

    program_description = parser.description or ''
    program_description = textwrap.dedent(program_description).strip()
    program_description = colorize_names(program_description)

    argument_helps = []
    for action in (named_actions + flag_actions):
        inv = '\n'.join(action_invocations[action])
        arghelp = []
        if action.help is not None:
            arghelp.append(textwrap.dedent(action.help).strip())
        if type(action) is argparse._StoreAction and action.default is not None:
            arghelp.append(f'Default: {repr(action.default)}')
        if action.option_strings and action.required:
            arghelp.append(f'{color.required_asterisk} Required{color.reset}')
        arghelp = '\n'.join(arghelp)
        arghelp = colorize_names(arghelp)
        arghelp = textwrap.indent(arghelp, '    ')
        argument_helps.append(f'{inv}\n{arghelp}'.strip())

    if len(main_invocation) > 1 or can_use_bare(parser):
        main_invocation = '> ' + ' '.join(main_invocation)
    else:
        main_invocation = ''

    # SUBPARSER PREVIEWS
    # The name and first paragraph of each command, or with full_subparsers
    # their complete helptext.

    subparser_previews = []
    for (sp, aliases) in get_subparsers(parser).items():
        sp_help = [f'{program_name} {color.command}{alias}{color.reset}' for alias in aliases]
        if full_subparsers:
            desc = make_helptext(
                sp,
                all_command_names=all_command_names,
                command_name=aliases[0],
                do_colors=do_colors,
                do_headline=False,
                program_name=program_name,
            )
            sp_help.append(textwrap.indent(desc, '    '))
        elif sp.description is not None:
            first_para = textwrap.dedent(sp.description).split('\n\n')[0].strip()
            sp_help.append(textwrap.indent(first_para, '    '))
        subparser_previews.append('\n'.join(sp_help))

    if subparser_previews:
        subparser_previews = '\n\n'.join(subparser_previews)
        subparser_previews = f'{color.command}Commands{color.reset}\n--------\n\n{subparser_previews}'

    # EXAMPLES
    # Example invocations are provided by the program as an `examples`
    # attribute on the parser: strings, or dicts with `args` and `comment`.

    example_invocations = []
    for example in getattr(parser, 'examples', []):
        if isinstance(example, dict):
            args = example['args']
            comment = example.get('comment')
        else:
            args = example
            comment = None
        example_invocation = f'> {invoke_name} {args}'
        if comment:
            example_invocation = f'# {comment}\n{example_invocation}'
        example_invocations.append(example_invocation)

    if example_invocations:
        example_invocations = 'Examples:\n' + '\n\n'.join(example_invocations)

    if subparser_previews and not full_subparsers:
        subparser_epilogue = textwrap.dedent(f'''
        To see details on each command, run
        > {program_name} {color.command}<command>{color.reset} {color.flag}--help{color.reset}
        ''').strip()
    else:
        subparser_epilogue = None

    # PUT IT ALL TOGETHER

    parts = [
        equals_header(program_name) if do_headline else None,
        program_description,
        main_invocation,
        '\n\n'.join(argument_helps),
        subparser_previews,
        subparser_epilogue,
        example_invocations,
    ]
    parts = [part.strip() for part in parts if part]
    parts = [part for part in parts if part]
    return '\n\n'.join(parts)

def print_helptext(text) -> None:
    '''
    Print the given text to stderr, along with any epilogues added by
    other modules.
    '''
    fulltext = [text.strip()]
    epilogues = {textwrap.dedent(epi).strip() for epi in HELPTEXT_EPILOGUES}
    fulltext.extend(sorted(epilogues))
    separator = '\n' + ('-' * 80) + '\n'
    fulltext = separator.join(fulltext)
    # Ensure one blank line above helptext.
    pipeable.stderr()
    pipeable.stderr(fulltext)

# MAINS
################################################################################

def go(parser, argv, *, program_name=None):
    subparsers = get_subparser_action(parser).choices
    all_command_names = set(subparsers.keys())
    command = listget(argv, 0, '').lower()

    def helptext(sp=parser, **kwargs):
        return make_helptext(
            sp,
            all_command_names=all_command_names,
            do_colors=use_colors(),
            program_name=program_name,
            **kwargs,
        )

    if command == 'helpall':
        print_helptext(helptext(full_subparsers=True))
        return 1

    if command in HELP_COMMANDS or command == '':
        print_helptext(helptext())
        if command == '':
            pipeable.stderr('\nYou are seeing the default help text because you did not choose a command.')
        return 1

    if command not in subparsers:
        print_helptext(helptext())
        pipeable.stderr(f'\nYou are seeing the default help text because "{command}" was not recognized.')
        return 1

    subparser = subparsers[command]
    arguments = argv[1:]

    no_args = len(arguments) == 0 and not can_use_bare(subparser)
    if no_args or any(arg.lower() in HELP_ARGS for arg in arguments):
        print_helptext(helptext(subparser, command_name=command))
        return 1

    args = parser.parse_args([command, *arguments])
    return args.func(args)
