"""Timesheet notification service package.

Holds the notification scheduling and delivery pipeline together with the
thin REST layer that exposes it.
"""
