'''
Named sentinels describing what happened to each planned shortcut rewrite.

A plain `object()` would do the job, but prints as an anonymous id, and these
values end up in log lines and the summary table where a readable name
matters.
'''
class Sentinel:
    '''
    Separate sentinels will never == each other even if they share a name.
    The truthyness can be chosen so that `if outcome:` reads naturally.
    '''
    def __init__(self, name, truthyness=True):
        self.name = name
        self.truthyness = truthyness

    def __bool__(self):
        return bool(self.truthyness)

    def __repr__(self):
        return f'<Sentinel {repr(self.name)} like {bool(self.truthyness)}>'

    def __str__(self):
        return self.name

# The shortcut now points at the new target.
REWRITTEN = Sentinel('rewritten')

# Dry run: the shortcut would have been rewritten.
WOULD_REWRITE = Sentinel('would rewrite')

# The new target is a reference directory and none of its shortcuts has the
# name we were looking for.
NO_REPLACEMENT = Sentinel('no replacement', truthyness=False)

# Writing the shortcut or its backup raised.
FAILED = Sentinel('failed', truthyness=False)

ALL = (REWRITTEN, WOULD_REWRITE, NO_REPLACEMENT, FAILED)
