"""Request parsing and response building shared by the blueprints."""

from datetime import datetime
from enum import Enum
from typing import Any, List, Type, TypeVar

from flask import g, jsonify, request
from pydantic import BaseModel

from ..database.queries import Page
from ..exceptions import BadRequestError, ValidationFailedError
from ..models.common import ApiResponse, PageModel
from ..models.flight import as_local_time
from ..services import Services

M = TypeVar("M", bound=BaseModel)
E = TypeVar("E", bound=Enum)


def services() -> Services:
    return g.services


def parse_body(model: Type[M]) -> M:
    """Validate the JSON body against ``model``. Errors become a 400."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    return model.model_validate(payload)


def page_args() -> tuple:
    return request.args.get("page", 0, type=int), request.args.get("size", 10, type=int)


def search_term() -> str:
    term = (request.args.get("q") or request.args.get("query") or "").strip()
    if not term:
        raise ValidationFailedError("Validation failed", {"q": "Search term is required"})
    return term


def enum_arg(enum_cls: Type[E], value: str) -> E:
    try:
        return enum_cls(value.upper())
    except ValueError:
        raise BadRequestError(f"Invalid {enum_cls.__name__}: {value}")


def datetime_arg(name: str) -> datetime:
    value = request.args.get(name)
    if not value:
        raise ValidationFailedError("Validation failed", {name: "Field required"})
    try:
        return as_local_time(datetime.fromisoformat(value))
    except ValueError:
        raise ValidationFailedError("Validation failed", {name: "Invalid ISO datetime"})


def to_model(model: Type[M], obj: Any) -> M:
    return model.model_validate(obj)


def to_models(model: Type[M], objs) -> List[M]:
    return [model.model_validate(obj) for obj in objs]


def to_page(model: Type[M], page: Page) -> PageModel:
    return PageModel[model](
        content=to_models(model, page.items),
        page=page.page,
        size=page.size,
        total_elements=page.total,
        total_pages=page.pages,
        has_next=page.has_next,
        has_previous=page.has_prev,
    )


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def success(data: Any = None, message: str = "Success", status: int = 200):
    body = ApiResponse.ok(_dump(data), message=message)
    return jsonify(body.model_dump(mode="json")), status
