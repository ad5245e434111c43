import sys

from lnkretarget import retarget

if __name__ == '__main__':
    raise SystemExit(retarget.main(sys.argv[1:]))
