"""Notifications app package.

Sends customer emails in reaction to booking domain events. Handlers are
registered on the message bus in ``NotificationsConfig.ready`` and only
run after the originating transaction has committed.
"""
