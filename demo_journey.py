"""
Demo: Walk the UK passport journey, then change an earlier answer and
watch the later answers drop out of play.
"""

import json

from formengine.config import configure_logging, load_config
from formengine.examples import build_example_passport_form
from formengine.form_model import FormModel
from formengine.journey import FormJourney
from formengine.state import InMemoryStateStore

SESSION = "demo-session"


def show(label, response):
    if response.is_redirect:
        print(f"  {label:<34} -> redirect {response.redirect}")
    else:
        errors = (response.view_model.get("errors") or {}).get("error_list", [])
        texts = [error["text"] for error in errors]
        print(f"  {label:<34} -> render {response.view_model['path']} {texts if texts else ''}")


def show_context(model, store):
    context = model.get_form_context(store.get_state(SESSION))
    print(f"  paths:            {context.paths}")
    print(f"  evaluation state: {json.dumps(context.evaluation_state, sort_keys=True)}")
    print()


if __name__ == "__main__":
    config = load_config()
    configure_logging(config)

    model = FormModel(build_example_passport_form(), config=config)
    store = InMemoryStateStore()
    journey = FormJourney(model, store)

    print()
    print("=" * 70)
    print(f"JOURNEY: {model.name}")
    print("=" * 70)
    print()

    show("GET /applicant-one-name", journey.get(SESSION, "/applicant-one-name"))
    show("POST /uk-passport (blank)", journey.post(SESSION, "/uk-passport", {}))
    show("POST /uk-passport (yes)", journey.post(SESSION, "/uk-passport", {"ukPassport": "true"}))
    show("POST /how-many-people (2)", journey.post(SESSION, "/how-many-people", {"numberOfApplicants": "2"}))
    show(
        "POST /applicant-one-name",
        journey.post(
            SESSION,
            "/applicant-one-name",
            {"applicantOneFirstName": "Enrique", "applicantOneLastName": "Chase"},
        ),
    )
    show(
        "POST /applicant-one-address",
        journey.post(
            SESSION,
            "/applicant-one-address",
            {
                "applicantOneAddress__addressLine1": "1 Anywhere Street",
                "applicantOneAddress__town": "Anywhereville",
                "applicantOneAddress__postcode": "AN1 2WH",
            },
        ),
    )
    show_context(model, store)

    print("Changing the first answer to 'No'")
    show("POST /uk-passport (no)", journey.post(SESSION, "/uk-passport", {"ukPassport": "false"}))
    show("GET /applicant-one-name", journey.get(SESSION, "/applicant-one-name"))
    show_context(model, store)
