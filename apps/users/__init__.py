"""Users app package.

Defines the platform user (email login, back-office role, zone
assignments) and the StaffSession contract the booking engine uses to
decide who is acting and on which zones. Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL.
"""
