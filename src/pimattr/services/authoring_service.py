"""Authoring Service: wires one authoring session's components together."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from pimattr.core.attributes.attribute import Attribute, AttributePage, AttributeQuery
from pimattr.core.attributes.draft import AttributeDraft
from pimattr.core.fetch.coordinator import FetchCoordinator
from pimattr.core.options.resolver import OptionsResolver
from pimattr.core.selectors.paginated import PaginatedAttributeSelector
from pimattr.core.settings import AuthoringSettings
from pimattr.core.workflow.stepper import StepperWorkflow
from pimattr.services.catalog_service import AttributeLookupService, AttributePersistenceService

logger = logging.getLogger(__name__)


class AuthoringSession:
    """One authoring session: a draft, its workflow and the session's query channels.

    Use as an async context manager; leaving it cancels every pending query
    and discards the draft.
    """

    def __init__(
        self,
        coordinator: FetchCoordinator[AttributeQuery, AttributePage],
        resolver: OptionsResolver,
        workflow: StepperWorkflow,
        settings: AuthoringSettings,
    ):
        self.coordinator = coordinator
        self.resolver = resolver
        self.workflow = workflow
        self.settings = settings

    def attribute_selector(self, **filters) -> PaginatedAttributeSelector:
        """A paginated attribute list sharing this session's coordinator."""
        filters.setdefault("page_size", self.settings.page_size)
        return PaginatedAttributeSelector(self.coordinator, **filters)

    def close(self) -> None:
        if not self.workflow.closed:
            self.workflow.cancel()
        self.coordinator.close()

    async def __aenter__(self) -> "AuthoringSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class AuthoringService:
    """Creates authoring sessions over the lookup and persistence collaborators."""

    def __init__(
        self,
        lookup: AttributeLookupService,
        persistence: AttributePersistenceService,
        settings: Optional[AuthoringSettings] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.lookup = lookup
        self.persistence = persistence
        self.settings = settings or AuthoringSettings()
        self.clock = clock

    def _components(self):
        coordinator = FetchCoordinator(
            self.lookup.list_attributes,
            debounce_seconds=self.settings.debounce_seconds,
            min_interval_seconds=self.settings.min_interval_seconds,
            operation="list_attributes",
            clock=self.clock,
        )
        resolver = OptionsResolver(
            self.lookup,
            coordinator,
            language=self.settings.language,
            pool_limit=self.settings.pool_limit,
        )
        return coordinator, resolver

    def new_session(self, draft: Optional[AttributeDraft] = None) -> AuthoringSession:
        coordinator, resolver = self._components()
        workflow = StepperWorkflow(
            draft or AttributeDraft(),
            resolver,
            self.persistence,
            language=self.settings.language,
        )
        logger.debug("Started authoring session for a new attribute")
        return AuthoringSession(coordinator, resolver, workflow, self.settings)

    async def edit_session(self, attribute_id: str) -> AuthoringSession:
        attribute: Attribute = await self.lookup.get_attribute_by_id(attribute_id)
        coordinator, resolver = self._components()
        workflow = StepperWorkflow.for_edit(attribute, resolver, self.persistence, language=self.settings.language)
        logger.debug("Started authoring session for %s", attribute.code)
        return AuthoringSession(coordinator, resolver, workflow, self.settings)


__all__ = ["AuthoringService", "AuthoringSession"]
