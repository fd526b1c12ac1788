import sys

from vvx_pages.main import main


if __name__ == "__main__":
    # Invoked every 30 minutes by the scheduler. Exit 1: cache or pages not written.
    sys.exit(main())
