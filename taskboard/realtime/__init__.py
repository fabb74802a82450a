"""Realtime infrastructure (Socket.IO).

One socket server, one room per user; domain publishers in
``taskboard.realtime.events`` decide who receives what.
"""
