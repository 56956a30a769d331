# backend/mentorhub/services/template_service.py
"""
Template Service for the MentorHub platform

Lists premade and saved schedule templates, saves the current schedule as
a template, and applies a template to a mentor's schedule.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import BusinessRuleException, NotFoundException
from ..domain.schedule import Schedule
from ..domain.templates import (
    Template,
    TemplateStorage,
    find_premade,
    list_all_templates,
    resolve_template,
    template_from_schedule,
)
from ..repositories.template_repository import TemplateRepository
from .availability_service import AvailabilityService
from .base import BaseService

logger = logging.getLogger(__name__)


class TemplateService(BaseService):
    def __init__(
        self,
        db: Session,
        storage: Optional[TemplateStorage] = None,
        availability_service: Optional[AvailabilityService] = None,
    ):
        super().__init__(db)
        self.storage: TemplateStorage = storage or TemplateRepository(db)
        self.availability_service = availability_service or AvailabilityService(db)

    @BaseService.measure_operation("list_templates")
    def list_templates(self, mentor_id: str) -> List[Template]:
        """Premade templates first, then the mentor's own, oldest first."""
        return list_all_templates(self.storage, mentor_id)

    @BaseService.measure_operation("save_template")
    def save_current_as_template(
        self, mentor_id: str, name: str, description: str = ""
    ) -> Template:
        """
        Snapshot the mentor's current (or default) schedule as a new template.

        Raises:
            ScheduleValidationException: If the name or description is invalid
        """
        self.log_operation("save_template", mentor_id=mentor_id, template_name=name)
        schedule = self.availability_service.get_schedule_or_default(mentor_id)
        template = template_from_schedule(schedule, name, description)
        with self.transaction():
            return self.storage.save_template(mentor_id, template)

    @BaseService.measure_operation("delete_template")
    def delete_template(self, mentor_id: str, template_id: str) -> None:
        """
        Raises:
            BusinessRuleException: For premade templates
            NotFoundException: If the mentor has no such template
        """
        if find_premade(template_id) is not None:
            raise BusinessRuleException(
                "Premade templates cannot be deleted", code="TEMPLATE_PREMADE"
            )
        with self.transaction():
            if not self.storage.delete_template(mentor_id, template_id):
                raise NotFoundException(
                    f"Template '{template_id}' not found", code="TEMPLATE_NOT_FOUND"
                )

    @BaseService.measure_operation("apply_template")
    def apply_template(self, mentor_id: str, template_key: str) -> Schedule:
        """
        Apply a stored template (by id) or premade one (by id or name).

        Settings subset, weekly patterns and a saved template's usage count
        change in one transaction; exceptions stay as they are.
        """
        template = resolve_template(self.storage, mentor_id, template_key)
        with self.transaction():
            schedule = self.availability_service.write_template(mentor_id, template)
            if not template.is_premade and template.id is not None:
                self.storage.record_use(mentor_id, template.id)
        return schedule
