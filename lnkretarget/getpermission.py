from lnkretarget import pipeable

YES_STRINGS = ['yes', 'y']
NO_STRINGS = ['no', 'n']

def getpermission(
        prompt=None,
        *,
        yes_strings=YES_STRINGS,
        no_strings=NO_STRINGS,
        must_pick=True,
    ):
    '''
    Prompt the user with a yes or no question.

    Return True for yes, False for no, and None if undecided.

    If `must_pick`, then undecided is not allowed and the input will repeat
    until they choose an acceptable answer. Either way, `if getpermission():`
    only proceeds on an explicit yes.

    When stdin is not a terminal there is nobody to ask, so the answer is no.
    Scripts should pass --yes instead of piping "y" in, because stdin may
    already be carrying the host list.
    '''
    if not pipeable.stdin_tty():
        pipeable.stderr('Not asking for permission because stdin is not a terminal. Use --yes.')
        return False

    if prompt is not None:
        pipeable.stderr(prompt)
    while True:
        answer = input(f'{yes_strings[0]}/{no_strings[0]}> ').strip()
        yes = answer.lower() in (option.lower() for option in yes_strings)
        no = answer.lower() in (option.lower() for option in no_strings)
        if yes or no or not must_pick:
            break

    if yes:
        return True
    if no:
        return False
    return None
