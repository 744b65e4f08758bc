"""
MET API — Generic Resource Routes
===================================

What:  Registers the uniform five-route shape for one entity type on a
       router:

    GET  /<plural>?page&pagination[&filters]   {<plural>: [...], morePages}
    GET  /<singular>/{id}                      {<singular>: {...}}
    POST /add<Singular>      {<singular>: {...}}     → {<singular>: new}
    POST /update<Singular>   {<singular>: {...}}     → {<singular>: previous}
    POST /delete<Singular>   {<singular>Id: "..."}   → {<singular>: removed}

How:   A `Resource` describes the entity, where its repository lives and
       how requests are scoped:

    scope_to_auth      owner field is the caller's user id, forced on add
                       and required to match on every read and write
    owner_query_param  list requires this query parameter as the owner
                       field value ("userId" → vbUserId)
    date_range         list accepts startDate / endDate (inclusive)
    extra_filters      optional equality filters read from the query
    ledger             add / update / delete go through LedgerService and
                       the response carries `currentTokens`
    delete_key         body key of the delete route when it is not
                       <singular>Id

Deleting an id that does not exist answers 500 "Server Error", not 404.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Type

from fastapi import APIRouter, Depends, Request

from met_api.exceptions import FieldError, InvalidInputError, MetError
from met_api.middleware.auth import AuthModel
from met_api.models.base import Entity
from met_api.repositories import PageQuery, Repository
from met_api.routes.common import (
    body_string,
    common_error_handler,
    json_body,
    page_and_pagination,
    query_date,
    required_query,
    require_auth,
)
from met_api.services.ledger_service import LedgerService
from met_api.storage import Repositories, get_repositories

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resource:
    entity_type: Type[Entity]
    repository: Callable[[Repositories], Repository]
    scope_to_auth: bool = False
    owner_query_param: Optional[str] = None
    date_range: bool = False
    extra_filters: Tuple[str, ...] = ()
    ledger: bool = False
    delete_key: Optional[str] = None

    @property
    def singular(self) -> str:
        return self.entity_type.resource_name

    @property
    def plural(self) -> str:
        return self.entity_type.plural_name

    @property
    def capitalized(self) -> str:
        return self.singular[0].upper() + self.singular[1:]

    @property
    def id_key(self) -> str:
        return self.delete_key or f"{self.singular}Id"

    def scope_filters(self, auth: AuthModel) -> Dict[str, Any]:
        if self.scope_to_auth:
            return {self.entity_type.owner_field: auth.user_id}
        return {}


def get_ledger_service(request: Request) -> LedgerService:
    return request.app.state.ledger_service


def list_query(resource: Resource, request: Request, auth: AuthModel) -> PageQuery:
    page, pagination = page_and_pagination(request)
    filters = resource.scope_filters(auth)

    if resource.owner_query_param:
        filters[resource.entity_type.owner_field] = required_query(
            request, resource.owner_query_param
        )
    for name in resource.extra_filters:
        value = request.query_params.get(name)
        if value:
            filters[name] = value

    start_date = end_date = None
    if resource.date_range:
        start_date = query_date(request, "startDate")
        end_date = query_date(request, "endDate")

    return PageQuery(
        page=page,
        pagination=pagination,
        filters=filters,
        start_date=start_date,
        end_date=end_date,
    )


def entity_from_body(resource: Resource, body: Dict[str, Any], auth: AuthModel, *, new: bool) -> Entity:
    raw = body.get(resource.singular)
    if not isinstance(raw, dict):
        raise InvalidInputError(
            message=f"Invalid {resource.singular}",
            field_errors=[FieldError(resource.singular, "expected an object")],
        )
    data = dict(raw)
    if new:
        data.setdefault("id", "")
    if resource.scope_to_auth:
        data[resource.entity_type.owner_field] = auth.user_id
    return resource.entity_type.from_json(data)


async def ensure_visible(resource: Resource, repo: Repository, entity_id: str, auth: AuthModel) -> Entity:
    """The stored entity if the caller may see it, else NotFoundError."""
    page = await repo.get_page(
        PageQuery(entity_id=entity_id, filters=resource.scope_filters(auth))
    )
    return page[0]


def register_resource(router: APIRouter, resource: Resource) -> None:
    """Adds the five routes for `resource` to `router`."""
    singular, plural = resource.singular, resource.plural

    async def list_entities(
        request: Request,
        auth: AuthModel = Depends(require_auth),
        repos: Repositories = Depends(get_repositories),
    ) -> Dict[str, Any]:
        try:
            repo = resource.repository(repos)
            query = list_query(resource, request, auth)
            entities = await repo.get_page(query)
            total = await repo.count(query)
            return {
                plural: [e.to_json() for e in entities],
                "morePages": total > query.end,
            }
        except Exception as e:
            raise common_error_handler(e) from e

    async def get_entity(
        entity_id: str,
        auth: AuthModel = Depends(require_auth),
        repos: Repositories = Depends(get_repositories),
    ) -> Dict[str, Any]:
        try:
            repo = resource.repository(repos)
            results = await repo.get_page(
                PageQuery(entity_id=entity_id, filters=resource.scope_filters(auth))
            )
            if len(results) > 1:
                raise MetError(
                    f"Multiple {plural} share id {entity_id}",
                    context={"count": len(results)},
                )
            return {singular: results[0].to_json()}
        except Exception as e:
            raise common_error_handler(e) from e

    async def add_entity(
        request: Request,
        auth: AuthModel = Depends(require_auth),
        repos: Repositories = Depends(get_repositories),
        ledger: LedgerService = Depends(get_ledger_service),
    ) -> Dict[str, Any]:
        try:
            repo = resource.repository(repos)
            entity = entity_from_body(resource, await json_body(request), auth, new=True)
            if resource.ledger:
                added, balance = await ledger.add_entry(
                    repos.vice_bank_users, repo, entity, auth.user_id
                )
                return {singular: added.to_json(), "currentTokens": balance}
            added = await repo.add(entity)
            return {singular: added.to_json()}
        except Exception as e:
            raise common_error_handler(e) from e

    async def update_entity(
        request: Request,
        auth: AuthModel = Depends(require_auth),
        repos: Repositories = Depends(get_repositories),
        ledger: LedgerService = Depends(get_ledger_service),
    ) -> Dict[str, Any]:
        try:
            repo = resource.repository(repos)
            entity = entity_from_body(resource, await json_body(request), auth, new=False)
            if resource.ledger:
                previous, balance = await ledger.update_entry(
                    repos.vice_bank_users, repo, entity, auth.user_id
                )
                return {singular: previous.to_json(), "currentTokens": balance}
            if resource.scope_to_auth:
                await ensure_visible(resource, repo, entity.id, auth)
            previous = await repo.update(entity)
            return {singular: previous.to_json()}
        except Exception as e:
            raise common_error_handler(e) from e

    async def delete_entity(
        request: Request,
        auth: AuthModel = Depends(require_auth),
        repos: Repositories = Depends(get_repositories),
        ledger: LedgerService = Depends(get_ledger_service),
    ) -> Dict[str, Any]:
        try:
            repo = resource.repository(repos)
            entity_id = body_string(await json_body(request), resource.id_key)
            if resource.ledger:
                removed, balance = await ledger.delete_entry(
                    repos.vice_bank_users, repo, entity_id, auth.user_id
                )
                return {singular: removed.to_json(), "currentTokens": balance}
            if resource.scope_to_auth:
                await ensure_visible(resource, repo, entity_id, auth)
            removed = await repo.delete(entity_id)
            return {singular: removed.to_json()}
        except Exception as e:
            raise common_error_handler(e, not_found_status=500) from e

    router.add_api_route(
        f"/{plural}", list_entities, methods=["GET"], name=f"list_{plural}",
        summary=f"List {plural} (paginated)",
    )
    router.add_api_route(
        f"/{singular}/{{entity_id}}", get_entity, methods=["GET"], name=f"get_{singular}",
        summary=f"Get one {singular} by id",
    )
    router.add_api_route(
        f"/add{resource.capitalized}", add_entity, methods=["POST"], name=f"add_{singular}",
        summary=f"Add a {singular}",
    )
    router.add_api_route(
        f"/update{resource.capitalized}", update_entity, methods=["POST"], name=f"update_{singular}",
        summary=f"Replace a {singular}; returns the previous value",
    )
    router.add_api_route(
        f"/delete{resource.capitalized}", delete_entity, methods=["POST"], name=f"delete_{singular}",
        summary=f"Delete a {singular}; returns the removed value",
    )
