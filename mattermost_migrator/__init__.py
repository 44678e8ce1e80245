#!/usr/bin/env python3
"""
Mattermost to Google Chat migration tool
"""

__version__ = "0.1.0"

from mattermost_migrator.core.checkpoint import CheckpointStore, ImportCheckpoint
from mattermost_migrator.core.config import load_config

# Import the main classes and functions for easier access
from mattermost_migrator.core.migrator import MattermostToChatMigrator, RunPhase
from mattermost_migrator.services.mattermost_client import MattermostClient
from mattermost_migrator.services.message_sender import send_message
