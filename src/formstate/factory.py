"""
Form factory: builds controls and panes for view definitions.

Field controls are chosen through an explicit registry keyed by the stable
kind tags view fields declare. Every registration carries a priority; for a
kind the registration with the highest priority wins, and among equal
priorities the one registered last. A view field lists its kinds most
specific first and the first kind with any registration is used, so an
application can override "number" without touching "text".

Example:
    factory = FormFactory(config=FormConfig(ignore_missing_fields=True))

    @factory.register("text", priority=10)
    def build_upper_case_text(presentable_field, view_field, config, **kwargs):
        return UpperCaseFieldControl(presentable_field, view_field, config, **kwargs)
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from formstate.config import FormConfig, get_default_config
from formstate.exceptions import ConfigurationError, FieldNotFoundError
from formstate.field_controls import (
    BoolFieldControl,
    CollectionFieldControl,
    ElementFieldControl,
    FieldControl,
    MultilineTextFieldControl,
    ReferenceCollectionFieldControl,
    ReferenceFieldControl,
)
from formstate.model import PresentableField, PresentableObject, ReferenceCollectionField, ReferenceField
from formstate.panes import (
    FormCollectionPane,
    FormPane,
    FormPaneForFields,
    FormPaneForPanes,
    FormPaneType,
    FormPaneWithTitle,
)
from formstate.protocols import FieldRepository, ObjectFieldRepository, ReferenceResolver
from formstate.view import (
    ViewCollectionPane,
    ViewFieldForCollection,
    ViewFieldForEditableValue,
    ViewFieldForElement,
    ViewPane,
    ViewPaneForFields,
    ViewPaneForPanes,
)

logger = logging.getLogger(__name__)

ControlBuilder = Callable[..., FieldControl]

DEFAULT_BUILDERS: Dict[str, ControlBuilder] = {
    "text": ElementFieldControl,
    "multiline_text": MultilineTextFieldControl,
    "number": ElementFieldControl,
    "bool": BoolFieldControl,
    "date": ElementFieldControl,
    "reference": ReferenceFieldControl,
    "multiple_texts": CollectionFieldControl,
    "multiple_numbers": CollectionFieldControl,
    "multiple_references": ReferenceCollectionFieldControl,
}


@dataclass(frozen=True)
class _Registration:
    builder: ControlBuilder
    priority: int
    sequence: int


class FormFactory:
    """
    Builds field controls, panes and sections for one application.

    Args:
        config: Strictness switches; defaults to the process default config
        field_repository: Field lookup; defaults to lookup without permission checks
        reference_resolver: Resolves submitted ids of reference fields
    """

    def __init__(self, config: Optional[FormConfig] = None, field_repository: Optional[FieldRepository] = None,
                 reference_resolver: Optional[ReferenceResolver] = None):
        self.config = config if config is not None else get_default_config()
        self.field_repository = field_repository if field_repository is not None else ObjectFieldRepository()
        self.reference_resolver = reference_resolver
        self._registrations: Dict[str, List[_Registration]] = {}
        self._sequence = itertools.count()
        for kind, builder in DEFAULT_BUILDERS.items():
            self.register(kind, builder)

    # ==================== REGISTRY ====================

    def register(self, kind: str, builder: Optional[ControlBuilder] = None, priority: int = 0):
        """
        Register a control builder for a kind tag.

        Can be used directly or as a decorator when ``builder`` is omitted.

        Args:
            kind: Stable kind tag, e.g. "text"
            builder: Callable(presentable_field, view_field, config, **kwargs) -> FieldControl
            priority: Higher priorities win; ties go to the latest registration
        """
        if builder is None:
            def decorator(func: ControlBuilder) -> ControlBuilder:
                self.register(kind, func, priority)
                return func
            return decorator
        registration = _Registration(builder, priority, next(self._sequence))
        self._registrations.setdefault(kind, []).append(registration)
        logger.debug(f"Registered control builder {getattr(builder, '__name__', builder)!r} "
                     f"for kind {kind!r} with priority {priority}")
        return builder

    def builder_for(self, view_field: ViewFieldForEditableValue) -> ControlBuilder:
        """Find the builder for the most specific registered kind of a view field."""
        for kind in view_field.kinds:
            registrations = self._registrations.get(kind)
            if registrations:
                winner = max(registrations, key=lambda registration: (registration.priority, registration.sequence))
                return winner.builder
        raise ConfigurationError(
            f"No field control is registered for view field {view_field.key!r} "
            f"of kinds {list(view_field.kinds)}."
        )

    # ==================== FIELDS ====================

    def find_field(self, presentable_object: PresentableObject, key: str) -> Optional[PresentableField]:
        """
        Find the field a view field or keyed pane is bound to.

        A field hidden by permissions is skipped (None); a field that does not
        exist at all raises FieldNotFoundError unless missing fields are ignored.
        """
        presentable_field = self.field_repository.find_field(presentable_object, key)
        if presentable_field is None and not self.config.ignore_missing_fields:
            if self.field_repository.find_field_ignoring_permissions(presentable_object, key) is None:
                raise FieldNotFoundError(key)
            logger.debug(f"Skipping field {key!r} hidden by permissions")
        return presentable_field

    def build_field_control(self, presentable_field: PresentableField, view_field: ViewFieldForEditableValue,
                            **kwargs) -> FieldControl:
        """Build the field control for a field, picked by the view field's kinds."""
        if isinstance(view_field, ViewFieldForElement) and not presentable_field.is_for_single_element:
            raise ConfigurationError(f"View field {view_field.key!r} expects a field for a single element.")
        if isinstance(view_field, ViewFieldForCollection) and presentable_field.is_for_single_element:
            raise ConfigurationError(f"View field {view_field.key!r} expects a field for a collection.")
        if isinstance(presentable_field, (ReferenceField, ReferenceCollectionField)):
            if presentable_field.resolver is None:
                presentable_field.resolver = self.reference_resolver
            if presentable_field.resolver is None:
                raise ConfigurationError(f"Reference field {presentable_field.key!r} requires a reference resolver.")
        builder = self.builder_for(view_field)
        return builder(presentable_field, view_field, self.config, **kwargs)

    # ==================== PANES ====================

    def build_pane(self, presentable_object: PresentableObject, view_pane: ViewPane, **kwargs) -> FormPane:
        """Build the form pane for a view pane."""
        if isinstance(view_pane, ViewCollectionPane):
            return FormCollectionPane(presentable_object, view_pane, self, **kwargs)
        if isinstance(view_pane, ViewPaneForPanes):
            return FormPaneForPanes(presentable_object, view_pane, self, **kwargs)
        if isinstance(view_pane, ViewPaneForFields):
            return FormPaneForFields(presentable_object, view_pane, self, **kwargs)
        raise ConfigurationError(f"View pane of type {type(view_pane).__name__} cannot be rendered.")

    def build_section(self, presentable_object: PresentableObject, view_pane: ViewPane,
                      is_new_from_postback: bool = False, sort_value: Optional[int] = None,
                      **kwargs) -> FormPaneWithTitle:
        """Build the section pane for one item of a collection pane."""
        if isinstance(view_pane, ViewPaneForPanes):
            pane_class = FormPaneForPanes
        elif isinstance(view_pane, ViewPaneForFields):
            pane_class = FormPaneForFields
        else:
            raise ConfigurationError(f"View pane of type {type(view_pane).__name__} cannot be rendered as section.")
        return pane_class(presentable_object, view_pane, self, pane_type=FormPaneType.SECTION,
                         is_new_from_postback=is_new_from_postback, sort_value=sort_value, **kwargs)
