"""
fpstrack CLI Entry Point

Allows running the package as a module: python -m fpstrack
"""

from fpstrack.cli import main

if __name__ == "__main__":
    main()
