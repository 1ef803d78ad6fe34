"""
Example form definitions used by the demos and the tests.

    build_example_passport_form  V1 link graph with sections and conditions
    build_example_pizza_form     repeating group
    build_example_licence_form   V2 linear engine, dates, checkboxes,
                                 conditional list items
    build_example_upload_form    file upload page
"""
from formengine.expressions import (
    ConditionDef,
    ConditionNode,
    Coordinator,
    DateDirection,
    DateUnit,
    Operator,
    RelativeDate,
)
from formengine.model import (
    ComponentDef,
    Engine,
    FormDefinition,
    Link,
    ListDef,
    ListItemDef,
    PageDef,
    PageType,
    RepeatDef,
    RepeatOptions,
    RepeatSchema,
    Section,
)

PASSPORT_HINT = "<p class=\"govuk-body\">Provide the details as they appear on your passport.</p>"


def _applicant_pages(number, section, name_path, address_path, after, first_name_message=None):
    middle_hint = "If you have a middle name on your passport you must include it here"
    first_name_options = {"required": True}
    if first_name_message:
        first_name_options["customValidationMessage"] = first_name_message
    return [
        PageDef(
            path=name_path,
            title=f"Applicant {'1' if number == 'One' else '2'}",
            section=section,
            components=[
                ComponentDef(name="html", type="Html", title="Html", content=PASSPORT_HINT),
                ComponentDef(
                    name=f"applicant{number}FirstName",
                    type="TextField",
                    title="First name",
                    options=first_name_options,
                ),
                ComponentDef(
                    name=f"applicant{number}MiddleName",
                    type="TextField",
                    title="Middle name",
                    hint=middle_hint,
                    options={"required": False, "optionalText": False},
                ),
                ComponentDef(
                    name=f"applicant{number}LastName",
                    type="TextField",
                    title="Surname",
                    options={"required": True},
                ),
            ],
            next=[Link(path=address_path)],
        ),
        PageDef(
            path=address_path,
            title="Address",
            section=section,
            components=[
                ComponentDef(
                    name=f"applicant{number}Address",
                    type="UkAddressField",
                    title="Address",
                    options={"required": True},
                )
            ],
            next=after,
        ),
    ]


def build_example_passport_form() -> FormDefinition:
    """
    UK passport journey.

        /uk-passport --(doesntHaveUKPassport)--> /testconditions
             |
        /how-many-people -> /applicant-one-name -> /applicant-one-address
                                                        |
                              (moreThanOneApplicant) /applicant-two -> /applicant-two-address
                                                        |
                                                  /testconditions -> /summary
    """
    applicant_one = _applicant_pages(
        "One",
        "applicantOneDetails",
        "/applicant-one-name",
        "/applicant-one-address",
        [Link(path="/applicant-two", condition="moreThanOneApplicant"), Link(path="/testconditions")],
        first_name_message="Enter your first name as it appears on your passport",
    )
    applicant_two = _applicant_pages(
        "Two",
        "applicantTwoDetails",
        "/applicant-two",
        "/applicant-two-address",
        [Link(path="/testconditions")],
    )

    pages = [
        PageDef(
            path="/uk-passport",
            title="Do you have a UK passport?",
            section="checkBeforeYouStart",
            components=[
                ComponentDef(
                    name="ukPassport",
                    type="YesNoField",
                    title="Do you have a UK passport?",
                    options={"required": True},
                )
            ],
            next=[Link(path="/how-many-people"), Link(path="/testconditions", condition="doesntHaveUKPassport")],
        ),
        PageDef(
            path="/how-many-people",
            title="How many applicants are there?",
            components=[
                ComponentDef(
                    name="numberOfApplicants",
                    type="SelectField",
                    title="How many applicants are there?",
                    options={"classes": "govuk-input--width-10"},
                    list="numberOfApplicants",
                )
            ],
            next=[Link(path="/applicant-one-name")],
        ),
        *applicant_one,
        *applicant_two,
        PageDef(path="/summary", title="Summary", controller=PageType.SUMMARY),
        PageDef(
            path="/testconditions",
            title="TestConditions",
            components=[
                ComponentDef(
                    name="pmmRYP",
                    type="Html",
                    title="Html",
                    options={"condition": "moreThanOneApplicant"},
                    content="<p class=\"govuk-body\">There Is Someone Called Applicant</p>",
                )
            ],
            next=[Link(path="/summary")],
        ),
    ]

    return FormDefinition(
        name="Conditions complex",
        start_page="/uk-passport",
        pages=pages,
        conditions=[
            ConditionDef(
                name="hasUKPassport",
                display_name="hasUKPassport",
                nodes=[ConditionNode(field="ukPassport", operator=Operator.IS, value="true")],
            ),
            ConditionDef(
                name="doesntHaveUKPassport",
                display_name="doesntHaveUKPassport",
                nodes=[ConditionNode(field="ukPassport", operator=Operator.IS, value="false")],
            ),
            ConditionDef(
                name="moreThanOneApplicant",
                display_name="moreThanOneApplicant",
                nodes=[ConditionNode(field="numberOfApplicants", operator=Operator.IS_MORE_THAN, value="1")],
            ),
        ],
        lists=[
            ListDef(
                name="numberOfApplicants",
                title="Number of people",
                type="number",
                items=[ListItemDef(text="1", value=1), ListItemDef(text="2", value=2)],
            )
        ],
        sections=[
            Section(name="checkBeforeYouStart", title="Check before you start"),
            Section(name="applicantOneDetails", title="Applicant 1"),
            Section(name="applicantTwoDetails", title="Applicant 2"),
        ],
        output_email="forms@example.com",
    )


def build_example_pizza_form(max_items: int = 2) -> FormDefinition:
    """Order up to `max_items` pizzas, then give a delivery name."""
    return FormDefinition(
        name="Pizza order",
        pages=[
            PageDef(
                path="/pizza-order",
                title="Pizza",
                controller=PageType.REPEAT,
                repeat=RepeatDef(
                    options=RepeatOptions(name="pizza", title="Pizza"),
                    schema=RepeatSchema(min=1, max=max_items),
                ),
                components=[
                    ComponentDef(name="toppings", type="TextField", title="Toppings"),
                    ComponentDef(
                        name="quantity",
                        type="NumberField",
                        title="Quantity",
                        schema={"min": 1, "max": 10},
                    ),
                ],
                next=[Link(path="/delivery")],
            ),
            PageDef(
                path="/delivery",
                title="Who is the order for?",
                components=[ComponentDef(name="deliveryName", type="TextField", title="Name")],
                next=[Link(path="/summary")],
            ),
            PageDef(path="/summary", title="Summary", controller=PageType.SUMMARY),
        ],
    )


def build_example_licence_form() -> FormDefinition:
    """
    Fishing licence in the V2 (linear) engine.

    /junior-licence is shown only to people born less than 17 years ago.
    The "Salmon and sea trout" licence type is offered only to adults.
    """
    return FormDefinition(
        name="Fishing licence",
        engine=Engine.V2,
        pages=[
            PageDef(
                path="/date-of-birth",
                title="What is your date of birth?",
                components=[
                    ComponentDef(
                        name="dateOfBirth",
                        type="DatePartsField",
                        title="Date of birth",
                        options={"maxDaysInFuture": 0},
                    )
                ],
            ),
            PageDef(
                path="/junior-licence",
                title="Junior licence",
                condition="isJunior",
                components=[
                    ComponentDef(
                        name="guardianName",
                        type="TextField",
                        title="Name of parent or guardian",
                    )
                ],
            ),
            PageDef(
                path="/licence-type",
                title="Which licence do you want?",
                components=[
                    ComponentDef(name="licenceType", type="RadiosField", title="Licence type", list="licenceTypes"),
                    ComponentDef(
                        name="waters",
                        type="CheckboxesField",
                        title="Waters you will fish",
                        list="waters",
                        options={"required": False},
                    ),
                ],
            ),
            PageDef(
                path="/licence-start",
                title="When should the licence start?",
                components=[
                    ComponentDef(
                        name="licenceStart",
                        type="MonthYearField",
                        title="Licence start",
                        options={"required": False},
                    )
                ],
            ),
            PageDef(path="/summary", title="Summary", controller=PageType.SUMMARY),
        ],
        conditions=[
            ConditionDef(
                name="isJunior",
                display_name="Born less than 17 years ago",
                nodes=[
                    ConditionNode(
                        field="dateOfBirth",
                        operator=Operator.IS_LESS_THAN,
                        value=RelativeDate(period=17, unit=DateUnit.YEARS, direction=DateDirection.PAST),
                    )
                ],
            ),
            ConditionDef(
                name="isAdult",
                display_name="Born at least 17 years ago",
                nodes=[
                    ConditionNode(
                        field="dateOfBirth",
                        operator=Operator.IS_AT_LEAST,
                        value=RelativeDate(period=17, unit=DateUnit.YEARS, direction=DateDirection.PAST),
                    )
                ],
            ),
            ConditionDef(
                name="fishesRivers",
                display_name="Fishes rivers or canals",
                nodes=[
                    ConditionNode(field="waters", operator=Operator.CONTAINS, value="rivers"),
                    ConditionNode(
                        field="waters",
                        operator=Operator.CONTAINS,
                        value="canals",
                        coordinator=Coordinator.OR,
                    ),
                ],
            ),
        ],
        lists=[
            ListDef(
                name="licenceTypes",
                title="Licence types",
                items=[
                    ListItemDef(text="Trout and coarse", value="trout"),
                    ListItemDef(text="Salmon and sea trout", value="salmon", condition="isAdult"),
                ],
            ),
            ListDef(
                name="waters",
                title="Waters",
                items=[
                    ListItemDef(text="Rivers", value="rivers"),
                    ListItemDef(text="Canals", value="canals"),
                    ListItemDef(text="Lakes", value="lakes"),
                ],
            ),
        ],
    )


def build_example_upload_form(max_files: int = 3) -> FormDefinition:
    return FormDefinition(
        name="Supporting evidence",
        pages=[
            PageDef(
                path="/evidence",
                title="Upload your evidence",
                components=[
                    ComponentDef(
                        name="evidence",
                        type="FileUploadField",
                        title="Evidence",
                        options={"accept": "application/pdf,image/jpeg"},
                        schema={"min": 1, "max": max_files},
                    )
                ],
                next=[Link(path="/summary")],
            ),
            PageDef(path="/summary", title="Summary", controller=PageType.SUMMARY),
        ],
        output_email="evidence@example.com",
    )
