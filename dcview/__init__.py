"""
dcview - container filesystem browsing.

Lists directories and reads files inside running (optionally nested,
Docker-in-Docker) containers, or inside exported filesystem snapshots.
"""

__version__ = "0.3.0"
