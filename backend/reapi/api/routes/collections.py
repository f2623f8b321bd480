"""Collection Routes — one POST endpoint per registered collection and operation.

Invariants:
    - Paths: /{collection}/query|edit|delete|insert|info, mounted under /{database}
    - Handlers only translate body → CollectionRequest and result → envelope
    - Errors propagate as ReapiError and are rendered by the global handlers
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from reapi.api.dependencies import get_engine, get_schema
from reapi.core.engine_context import EngineContext
from reapi.core.schema import CollectionSchema
from reapi.core.type_definitions import render_type_definitions
from reapi.schemas.requests import CollectionRequestBody, SuccessResponse
from reapi.services.collection_operations import (
    CollectionRequest, collection_info, delete_documents, edit_documents,
    insert_document, query_documents,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["collections"])


def _to_request(body: CollectionRequestBody) -> CollectionRequest:
    return CollectionRequest(
        username=body.username,
        user_token=body.user_token,
        query=body.query,
        document_data=body.document_data,
    )


@router.get("/types", response_class=PlainTextResponse)
async def type_definitions(engine: EngineContext = Depends(get_engine)):
    """TypeScript declarations for every registered collection."""
    return render_type_definitions(engine.registry)


@router.post("/{collection}/query", status_code=status.HTTP_200_OK)
async def query(
    body: CollectionRequestBody,
    schema: CollectionSchema = Depends(get_schema),
    engine: EngineContext = Depends(get_engine),
):
    documents = await query_documents(engine, schema, _to_request(body))
    return SuccessResponse(data=documents)


@router.post("/{collection}/edit", status_code=status.HTTP_200_OK)
async def edit(
    body: CollectionRequestBody,
    schema: CollectionSchema = Depends(get_schema),
    engine: EngineContext = Depends(get_engine),
):
    edited = await edit_documents(engine, schema, _to_request(body))
    return SuccessResponse(data={"count": edited})


@router.post("/{collection}/delete", status_code=status.HTTP_200_OK)
async def delete(
    body: CollectionRequestBody,
    schema: CollectionSchema = Depends(get_schema),
    engine: EngineContext = Depends(get_engine),
):
    deleted = await delete_documents(engine, schema, _to_request(body))
    return SuccessResponse(data={"count": deleted})


@router.post("/{collection}/insert", status_code=status.HTTP_200_OK)
async def insert(
    body: CollectionRequestBody,
    schema: CollectionSchema = Depends(get_schema),
    engine: EngineContext = Depends(get_engine),
):
    document_id = await insert_document(engine, schema, _to_request(body))
    return SuccessResponse(data={"id": document_id})


@router.post("/{collection}/info", status_code=status.HTTP_200_OK)
async def info(
    body: CollectionRequestBody,
    schema: CollectionSchema = Depends(get_schema),
    engine: EngineContext = Depends(get_engine),
):
    description = await collection_info(engine, schema, _to_request(body))
    return SuccessResponse(data=description)
