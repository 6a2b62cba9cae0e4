"""
Postback reconciliation for HTML forms over editable object graphs.

This package renders presentable object graphs as HTML forms and reconciles
submitted form data back into those graphs, without server-side session state
for the form itself.

Key Features:
- Single-use instance tokens per client against replayed submissions
- Hashed echo guard telling unedited echoes apart from real edits
- Identity tokens re-identifying added, removed and reordered collection items
- Tri-state validity (True/False/None) from fields up to the whole form

Quick Start:
    >>> from formstate import Form, FormFactory, FormRequest, InstanceRegistry
    >>>
    >>> registry = InstanceRegistry()          # once per process
    >>> factory = FormFactory()
    >>>
    >>> form = Form(order, order_view, factory, registry)
    >>> form.create_child_controls(FormRequest.from_mapping(submitted_fields,
    ...                                                     client_address="10.0.0.1"))
    >>> if form.has_valid_value:
    ...     save(order)
    ... else:
    ...     markup = form.render()

Modules:
    - echo_hash: Hashed echo guard
    - field_controls: Postback intake and rendering of single fields
    - section_identity: Identity tokens of collection sections
    - collection_reconciler: Scan, reposition and sort of object collections
    - validity: Tri-state validity aggregation
    - instance_registry: Anti-replay registry of instance tokens
    - panes, form: Control tree
    - factory: Kind-tag registry choosing field controls
    - config: Strictness switches and the process default config
"""

# Model and views
from formstate.model import (
    RemovalType,
    PresentableObject,
    PresentableField,
    ElementField,
    StringField,
    IntField,
    FloatField,
    BoolField,
    DateField,
    ReferenceField,
    ObjectField,
    CollectionField,
    StringCollectionField,
    IntCollectionField,
    ReferenceCollectionField,
    ObjectCollectionField,
)
from formstate.view import (
    Mandatoriness,
    ValidityCheck,
    ValueSeparator,
    ViewField,
    ViewFieldForElement,
    ViewFieldForSingleLineText,
    ViewFieldForMultilineText,
    ViewFieldForNumber,
    ViewFieldForBool,
    ViewFieldForDate,
    ViewFieldForReference,
    ViewFieldForCollection,
    ViewFieldForMultipleTexts,
    ViewFieldForMultipleNumbers,
    ViewFieldForMultipleReferences,
    ViewPane,
    ViewPaneForFields,
    ViewPaneForPanes,
    ViewCollectionPane,
    FormView,
)

# Postback protocol
from formstate.postback import PostBackState, FormPayload, FormRequest
from formstate.echo_hash import hash_of, is_unedited_echo
from formstate.section_identity import IdentityKind, IdentityToken, decode_token, encode_token, select_token
from formstate.collection_reconciler import CollectionReconciler, ResolvedSection
from formstate.validity import aggregate_validity
from formstate.instance_registry import InstanceRegistry

# Controls
from formstate.field_controls import (
    FieldControl,
    ElementFieldControl,
    MultilineTextFieldControl,
    ReferenceFieldControl,
    BoolFieldControl,
    CollectionFieldControl,
    ReferenceCollectionFieldControl,
)
from formstate.panes import FormPane, FormPaneForFields, FormPaneForPanes, FormCollectionPane
from formstate.factory import FormFactory
from formstate.form import Form
from formstate.html_writer import HtmlWriter

# Collaborators and configuration
from formstate.protocols import FieldRepository, ReferenceResolver, ObjectFieldRepository
from formstate.config import FormConfig, set_default_config, get_default_config, reset_default_config
from formstate.exceptions import (
    FormStateError,
    ProtocolViolation,
    InvalidPostBackError,
    MissingFieldError,
    ConfigurationError,
    FieldNotFoundError,
)

__all__ = [
    # Model
    'RemovalType',
    'PresentableObject',
    'PresentableField',
    'ElementField',
    'StringField',
    'IntField',
    'FloatField',
    'BoolField',
    'DateField',
    'ReferenceField',
    'ObjectField',
    'CollectionField',
    'StringCollectionField',
    'IntCollectionField',
    'ReferenceCollectionField',
    'ObjectCollectionField',
    # Views
    'Mandatoriness',
    'ValidityCheck',
    'ValueSeparator',
    'ViewField',
    'ViewFieldForElement',
    'ViewFieldForSingleLineText',
    'ViewFieldForMultilineText',
    'ViewFieldForNumber',
    'ViewFieldForBool',
    'ViewFieldForDate',
    'ViewFieldForReference',
    'ViewFieldForCollection',
    'ViewFieldForMultipleTexts',
    'ViewFieldForMultipleNumbers',
    'ViewFieldForMultipleReferences',
    'ViewPane',
    'ViewPaneForFields',
    'ViewPaneForPanes',
    'ViewCollectionPane',
    'FormView',
    # Postback protocol
    'PostBackState',
    'FormPayload',
    'FormRequest',
    'hash_of',
    'is_unedited_echo',
    'IdentityKind',
    'IdentityToken',
    'decode_token',
    'encode_token',
    'select_token',
    'CollectionReconciler',
    'ResolvedSection',
    'aggregate_validity',
    'InstanceRegistry',
    # Controls
    'FieldControl',
    'ElementFieldControl',
    'MultilineTextFieldControl',
    'ReferenceFieldControl',
    'BoolFieldControl',
    'CollectionFieldControl',
    'ReferenceCollectionFieldControl',
    'FormPane',
    'FormPaneForFields',
    'FormPaneForPanes',
    'FormCollectionPane',
    'FormFactory',
    'Form',
    'HtmlWriter',
    # Collaborators and configuration
    'FieldRepository',
    'ReferenceResolver',
    'ObjectFieldRepository',
    'FormConfig',
    'set_default_config',
    'get_default_config',
    'reset_default_config',
    # Errors
    'FormStateError',
    'ProtocolViolation',
    'InvalidPostBackError',
    'MissingFieldError',
    'ConfigurationError',
    'FieldNotFoundError',
]

__version__ = '1.0.0'
__description__ = 'Postback reconciliation for HTML forms over editable object graphs'
