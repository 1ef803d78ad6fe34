"""
Field Type Registry

Maps each FieldType tag to the class that implements it. Pages never
instantiate field classes directly; they call `create_component`.

ARCHITECTURAL RULE:
    Adding a field type means adding a class and one registry entry.
    Nothing else in the engine switches on field types.
"""

from typing import Any, Dict, Type

from ..errors import FormDefinitionError
from ..model import ComponentDef
from .base import ComponentBase, ContentComponent, FieldType, FormComponent, MESSAGES
from .composite import CompositeField, DatePartsField, MonthYearField, UkAddressField
from .files import FileUploadField
from .selection import (
    AutocompleteField,
    CheckboxesField,
    ListFormComponent,
    RadiosField,
    SelectField,
    YesNoField,
)
from .text import EmailAddressField, MultilineTextField, NumberField, TelephoneNumberField, TextField

FIELD_TYPES: Dict[FieldType, Type[ComponentBase]] = {
    FieldType.TEXT: TextField,
    FieldType.MULTILINE_TEXT: MultilineTextField,
    FieldType.EMAIL_ADDRESS: EmailAddressField,
    FieldType.TELEPHONE_NUMBER: TelephoneNumberField,
    FieldType.NUMBER: NumberField,
    FieldType.YES_NO: YesNoField,
    FieldType.RADIOS: RadiosField,
    FieldType.SELECT: SelectField,
    FieldType.AUTOCOMPLETE: AutocompleteField,
    FieldType.CHECKBOXES: CheckboxesField,
    FieldType.DATE_PARTS: DatePartsField,
    FieldType.MONTH_YEAR: MonthYearField,
    FieldType.UK_ADDRESS: UkAddressField,
    FieldType.FILE_UPLOAD: FileUploadField,
    FieldType.HTML: ContentComponent,
    FieldType.PARA: ContentComponent,
    FieldType.INSET_TEXT: ContentComponent,
    FieldType.DETAILS: ContentComponent,
    FieldType.MARKDOWN: ContentComponent,
}


def create_component(definition: ComponentDef, form: Any = None) -> ComponentBase:
    """
    Build the runtime component for a definition.

    Raises:
        FormDefinitionError: if the type tag is not registered
    """
    try:
        field_type = FieldType(definition.type)
    except ValueError:
        raise FormDefinitionError(
            f"Component {definition.name!r} has unknown type {definition.type!r}"
        ) from None
    return FIELD_TYPES[field_type](definition, form)


__all__ = [
    "FIELD_TYPES",
    "MESSAGES",
    "AutocompleteField",
    "CheckboxesField",
    "ComponentBase",
    "CompositeField",
    "ContentComponent",
    "DatePartsField",
    "EmailAddressField",
    "FieldType",
    "FileUploadField",
    "FormComponent",
    "ListFormComponent",
    "MonthYearField",
    "MultilineTextField",
    "NumberField",
    "RadiosField",
    "SelectField",
    "TelephoneNumberField",
    "TextField",
    "UkAddressField",
    "YesNoField",
    "create_component",
]
