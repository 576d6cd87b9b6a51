import logging
from typing import List

from . import schemas

logger = logging.getLogger(__name__)

AT_RISK_STATUS = "At Risk"
AT_RISK_MESSAGE = "{name} is at risk due to delayed task completion"


def generate_insights(storage, deduplicate: bool = False) -> List[schemas.Insight]:
    """Append one insight per "At Risk" project and return every insight.

    The generated insights keep the default ``info`` type. Repeated calls add
    duplicates unless ``deduplicate`` is set, in which case a project that
    already carries the same message is skipped.
    """
    existing = set()
    if deduplicate:
        existing = {(insight.project_id, insight.message) for insight in storage.get_insights()}

    created = 0
    for project in storage.get_projects():
        if project.status != AT_RISK_STATUS:
            continue
        message = AT_RISK_MESSAGE.format(name=project.name)
        if (project.id, message) in existing:
            continue
        storage.create_insight(schemas.InsightCreate(message=message, project_id=project.id))
        created += 1

    logger.info("Generated %d insight(s)", created)
    return storage.get_insights()
