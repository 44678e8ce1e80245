#!/usr/bin/env python3
"""
Main execution module for the Mattermost to Google Chat migration tool
"""

from mattermost_migrator.cli.commands import main

if __name__ == "__main__":
    main()
