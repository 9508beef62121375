"""Meeting module -- data models, repository, and the meeting query service.

Provides the Meeting schemas, the MeetingModel table, MeetingRepository
(persistence plus the creator/attendee name enrichment read path), and
MeetingService, which validates input and maps store failures onto the
meeting error taxonomy.
"""
