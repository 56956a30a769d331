# backend/mentorhub/repositories/template_repository.py
"""
TemplateRepository - database-backed ``TemplateStorage``

Configuration is kept as one JSON document per template so templates stay
readable even if the availability tables change shape.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..domain.templates import Template, TemplateConfiguration
from ..models.template import AvailabilityTemplate
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def template_from_row(row: AvailabilityTemplate) -> Template:
    return Template(
        id=row.id,
        name=row.name,
        description=row.description or "",
        configuration=TemplateConfiguration.from_payload(row.configuration),
        usage_count=row.usage_count,
        created_at=row.created_at,
    )


class TemplateRepository(BaseRepository[AvailabilityTemplate]):
    def __init__(self, db: Session):
        super().__init__(db, AvailabilityTemplate)

    def list_templates(self, mentor_id: str) -> List[Template]:
        try:
            rows = (
                self.db.query(AvailabilityTemplate)
                .filter(AvailabilityTemplate.mentor_id == mentor_id)
                .order_by(AvailabilityTemplate.created_at, AvailabilityTemplate.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing templates for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to list templates: {str(e)}")
        return [template_from_row(row) for row in rows]

    def get_template(self, mentor_id: str, template_id: str) -> Optional[Template]:
        row = self.find_one_by(mentor_id=mentor_id, id=template_id)
        return template_from_row(row) if row is not None else None

    def save_template(self, mentor_id: str, template: Template) -> Template:
        row = self.create(
            mentor_id=mentor_id,
            name=template.name,
            description=template.description,
            configuration=template.configuration.to_payload(),
        )
        return template_from_row(row)

    def delete_template(self, mentor_id: str, template_id: str) -> bool:
        row = self.find_one_by(mentor_id=mentor_id, id=template_id)
        if row is None:
            return False
        return self.delete(row.id)

    def record_use(self, mentor_id: str, template_id: str) -> None:
        row = self.find_one_by(mentor_id=mentor_id, id=template_id)
        if row is not None:
            row.usage_count = (row.usage_count or 0) + 1
            self.flush()
