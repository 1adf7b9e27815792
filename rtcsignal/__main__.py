"""Allow running as: python -m rtcsignal"""

from rtcsignal.cli import main

if __name__ == "__main__":
    main()
