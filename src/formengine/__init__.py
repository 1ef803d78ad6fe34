"""
Form Navigation Engine

Drives multi-page questionnaires from a declarative form definition:
which page comes next, which stored answers are still in play after an
earlier answer changes, and how composite answers (dates, addresses,
repeated groups, uploaded files) map onto one flat state record.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - HTTP routing, cookies or sessions
    - HTML templates
    - Durable storage

Definitions (`formengine.model`) are data. Behavior is built from them
(`formengine.form_model`) and driven through `formengine.journey`.
"""

__version__ = "0.1.0"
