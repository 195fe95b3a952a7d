"""Meeting records -- schemas, Firestore repository, and the service behind the handlers.

Meetings are stored one document per meeting in the ``meetings`` collection,
with an optional Google Calendar event carrying the Meet conference.
"""
