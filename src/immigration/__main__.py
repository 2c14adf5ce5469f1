"""Allow running as: python -m immigration"""
from .cli import main

if __name__ == "__main__":
    main()
