"""
Serialization helpers for form definitions.

Reads and writes the JSON/YAML definition format through an intermediate
dict representation:

    {
      "name": "Conditions complex",
      "startPage": "/uk-passport",
      "engine": "V1",
      "pages": [{"path": ..., "title": ..., "section": ..., "condition": ...,
                 "controller": ..., "components": [...], "next": [...],
                 "repeat": {"options": {...}, "schema": {...}}}],
      "conditions": [{"name": ..., "displayName": ...,
                      "value": {"name": ..., "conditions": [...]}}],
      "lists": [...], "sections": [...], "outputEmail": ..., "metadata": {...}
    }

Condition nodes are either
    {"field": {"name": "ukPassport"}, "operator": "is",
     "value": {"type": "Value", "value": "false"}, "coordinator": "or"}
or a reference to another condition
    {"conditionName": "isAdult", "coordinator": "and"}.
Relative date values use
    {"type": "RelativeDate", "period": "2", "unit": "years", "direction": "in the past"}.

Loading is lenient about optional keys; dumping always writes the full shape.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

import yaml

from formengine.errors import FormDefinitionError
from formengine.expressions import (
    ConditionDef,
    ConditionItem,
    ConditionNode,
    ConditionRef,
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


def coordinator_from_value(value: Optional[str]) -> Optional[Coordinator]:
    return Coordinator(value) if value else None


def value_to_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, RelativeDate):
        return {
            "type": "RelativeDate",
            "period": str(value.period),
            "unit": value.unit.value,
            "direction": value.direction.value,
        }
    return {"type": "Value", "value": value, "display": str(value)}


def value_from_dict(d: Any) -> Any:
    if not isinstance(d, dict):
        return d
    if d.get("type") == "RelativeDate":
        return RelativeDate(
            period=int(d["period"]),
            unit=DateUnit(d["unit"]),
            direction=DateDirection(d.get("direction", DateDirection.PAST.value)),
        )
    return d.get("value")


def node_to_dict(node: ConditionItem) -> Dict[str, Any]:
    coordinator = node.coordinator.value if node.coordinator else None
    if isinstance(node, ConditionRef):
        return {"conditionName": node.condition_name, "coordinator": coordinator}
    if isinstance(node, ConditionNode):
        return {
            "field": {"name": node.field},
            "operator": node.operator.value,
            "value": value_to_dict(node.value),
            "coordinator": coordinator,
        }
    raise TypeError(f"Unsupported condition node type: {type(node)}")


def node_from_dict(d: Dict[str, Any]) -> ConditionItem:
    coordinator = coordinator_from_value(d.get("coordinator"))
    if "conditionName" in d:
        return ConditionRef(condition_name=d["conditionName"], coordinator=coordinator)
    field = d["field"]
    return ConditionNode(
        field=field["name"] if isinstance(field, dict) else field,
        operator=Operator(d["operator"]),
        value=value_from_dict(d.get("value")),
        coordinator=coordinator,
    )


def condition_to_dict(c: ConditionDef) -> Dict[str, Any]:
    return {
        "name": c.name,
        "displayName": c.display_name,
        "value": {"name": c.display_name or c.name, "conditions": [node_to_dict(n) for n in c.nodes]},
    }


def condition_from_dict(d: Dict[str, Any]) -> ConditionDef:
    value = d.get("value") or {}
    nodes = value.get("conditions", d.get("conditions", []))
    return ConditionDef(
        name=d["name"],
        display_name=d.get("displayName", ""),
        nodes=[node_from_dict(n) for n in nodes],
    )


def component_to_dict(c: ComponentDef) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "name": c.name,
        "type": c.type,
        "title": c.title,
        "options": dict(c.options),
        "schema": dict(c.schema),
    }
    if c.hint is not None:
        d["hint"] = c.hint
    if c.list is not None:
        d["list"] = c.list
    if c.content is not None:
        d["content"] = c.content
    return d


def component_from_dict(d: Dict[str, Any]) -> ComponentDef:
    return ComponentDef(
        name=d["name"],
        type=d["type"],
        title=d.get("title", ""),
        hint=d.get("hint") or None,
        options=dict(d.get("options") or {}),
        schema=dict(d.get("schema") or {}),
        list=d.get("list"),
        content=d.get("content"),
    )


def link_to_dict(link: Link) -> Dict[str, Any]:
    d: Dict[str, Any] = {"path": link.path}
    if link.condition:
        d["condition"] = link.condition
    return d


def link_from_dict(d: Dict[str, Any]) -> Link:
    return Link(path=d["path"], condition=d.get("condition") or None)


def repeat_to_dict(r: Optional[RepeatDef]) -> Optional[Dict[str, Any]]:
    if r is None:
        return None
    return {
        "options": {"name": r.options.name, "title": r.options.title},
        "schema": {"min": r.schema.min, "max": r.schema.max},
    }


def repeat_from_dict(d: Optional[Dict[str, Any]]) -> Optional[RepeatDef]:
    if d is None:
        return None
    schema = d.get("schema") or {}
    return RepeatDef(
        options=RepeatOptions(name=d["options"]["name"], title=d["options"].get("title", "")),
        schema=RepeatSchema(min=schema.get("min", 1), max=schema.get("max", 25)),
    )


def page_to_dict(p: PageDef) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "path": p.path,
        "title": p.title,
        "components": [component_to_dict(c) for c in p.components],
        "next": [link_to_dict(link) for link in p.next],
    }
    if p.section:
        d["section"] = p.section
    if p.condition:
        d["condition"] = p.condition
    if p.controller:
        d["controller"] = p.controller.value
    if p.repeat:
        d["repeat"] = repeat_to_dict(p.repeat)
    return d


def page_from_dict(d: Dict[str, Any]) -> PageDef:
    controller = d.get("controller")
    return PageDef(
        path=d["path"],
        title=d.get("title", ""),
        section=d.get("section") or None,
        condition=d.get("condition") or None,
        controller=PageType(controller) if controller else None,
        components=[component_from_dict(c) for c in d.get("components", [])],
        next=[link_from_dict(link) for link in d.get("next", [])],
        repeat=repeat_from_dict(d.get("repeat")),
    )


def list_to_dict(l: ListDef) -> Dict[str, Any]:
    items = []
    for item in l.items:
        entry: Dict[str, Any] = {"text": item.text, "value": item.value}
        if item.hint:
            entry["hint"] = item.hint
        if item.condition:
            entry["condition"] = item.condition
        items.append(entry)
    return {"name": l.name, "title": l.title, "type": l.type, "items": items}


def list_from_dict(d: Dict[str, Any]) -> ListDef:
    return ListDef(
        name=d["name"],
        title=d.get("title", ""),
        type=d.get("type", "string"),
        items=[
            ListItemDef(
                text=item["text"],
                value=item["value"],
                hint=item.get("hint") or item.get("description") or None,
                condition=item.get("condition") or None,
            )
            for item in d.get("items", [])
        ],
    )


def section_to_dict(s: Section) -> Dict[str, Any]:
    return {"name": s.name, "title": s.title, "hideTitle": s.hide_title}


def section_from_dict(d: Dict[str, Any]) -> Section:
    return Section(name=d["name"], title=d.get("title", ""), hide_title=bool(d.get("hideTitle", False)))


def form_to_dict(f: FormDefinition) -> Dict[str, Any]:
    return {
        "name": f.name,
        "startPage": f.start_page,
        "engine": f.engine.value,
        "pages": [page_to_dict(p) for p in f.pages],
        "conditions": [condition_to_dict(c) for c in f.conditions],
        "lists": [list_to_dict(l) for l in f.lists],
        "sections": [section_to_dict(s) for s in f.sections],
        "outputEmail": f.output_email,
        "metadata": f.metadata,
    }


def form_from_dict(d: Dict[str, Any]) -> FormDefinition:
    """
    Build a FormDefinition from its dict form.

    Raises:
        FormDefinitionError: if a required key is missing or a value is
            not one of the known enum values
    """
    if not isinstance(d, dict):
        raise FormDefinitionError("A form definition must be a mapping")
    try:
        return FormDefinition(
            name=d.get("name", ""),
            start_page=d.get("startPage"),
            pages=[page_from_dict(p) for p in d.get("pages", [])],
            conditions=[condition_from_dict(c) for c in d.get("conditions", [])],
            lists=[list_from_dict(l) for l in d.get("lists", [])],
            sections=[section_from_dict(s) for s in d.get("sections", [])],
            engine=Engine(d.get("engine") or Engine.V1.value),
            output_email=d.get("outputEmail"),
            metadata=dict(d.get("metadata") or {}),
        )
    except (KeyError, ValueError, TypeError) as exc:
        raise FormDefinitionError(f"Invalid form definition: {exc}") from exc


def form_to_json(f: FormDefinition) -> str:
    return json.dumps(form_to_dict(f), sort_keys=True)


def form_from_json(s: str) -> FormDefinition:
    d = json.loads(s)
    return form_from_dict(d)


def form_to_yaml(f: FormDefinition) -> str:
    return yaml.safe_dump(form_to_dict(f))


def form_from_yaml(s: str) -> FormDefinition:
    d = yaml.safe_load(s)
    return form_from_dict(d)
