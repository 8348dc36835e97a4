import sys

from qae.main import main

if __name__ == "__main__":
    sys.exit(main())
