"""
Business logic services.

Services sit between the API and the engine: they bracket every
timeline mutation in the store's transactional update and combine the
element and timeline stores where a request needs both.
"""
from chronomap.services import element_service
from chronomap.services import epoch_service
from chronomap.services import timeline_service
