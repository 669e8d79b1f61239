# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from pymongo import MongoClient

from safealert.auth.passwords import PasswordCodec
from safealert.config import Settings, get_settings
from safealert.core.utils import mask_secrets
from safealert.errors import AccountError
from safealert.infra.account_store import AccountStore, MongoAccountStore
from safealert.infra.image_store import DiskImageStorage
from safealert.services.account_service import AccountService
from safealert.services.alert_service import get_emergency_messages

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    admin_type: Optional[str] = None


class AccountLookup(BaseModel):
    email: Optional[str] = None
    admin_type: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    email: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")
    admin_type: Optional[str] = None


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_images(request: Request) -> DiskImageStorage:
    return request.app.state.images


# ------------------ Routes ------------------


def _register(kind: str, payload: Dict[str, Any], accounts: AccountService) -> PlainTextResponse:
    fields = {k: v for k, v in payload.items() if k != "password"}
    accounts.register(kind, fields, payload.get("password"))
    return PlainTextResponse("Registration successful")


@router.post("/register-user")
def register_user(payload: Dict[str, Any] = Body(...), accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /register-user %s", mask_secrets(payload))
    return _register("user", payload, accounts)


@router.post("/register-admin")
def register_admin(payload: Dict[str, Any] = Body(...), accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /register-admin %s", mask_secrets(payload))
    return _register("admin", payload, accounts)


@router.post("/login-user")
def login_user(body: LoginRequest, accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /login-user email=%s", body.email)
    accounts.login("user", body.email, body.password)
    return PlainTextResponse("Login successful")


@router.post("/login-admin")
def login_admin(body: LoginRequest, accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /login-admin email=%s admin_type=%s", body.email, body.admin_type)
    accounts.login("admin", body.email, body.password, body.admin_type)
    return PlainTextResponse("Login successful")


@router.post("/user-data")
def user_data(body: AccountLookup, accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /user-data email=%s", body.email)
    return accounts.fetch("user", body.email).public()


@router.post("/admin-data")
def admin_data(body: AccountLookup, accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /admin-data email=%s admin_type=%s", body.email, body.admin_type)
    return accounts.fetch("admin", body.email, body.admin_type).public()


@router.post("/change-password-user")
def change_password_user(body: ChangePasswordRequest, accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /change-password-user email=%s", body.email)
    accounts.change_password("user", body.email, body.new_password)
    return PlainTextResponse("Password changed successfully")


@router.post("/change-password-admin")
def change_password_admin(body: ChangePasswordRequest, accounts: AccountService = Depends(get_accounts)):
    logger.info("POST /change-password-admin email=%s admin_type=%s", body.email, body.admin_type)
    accounts.change_password("admin", body.email, body.new_password, body.admin_type)
    return PlainTextResponse("Password changed successfully")


async def _upload_image(
    kind: str,
    email: str,
    admin_type: Optional[str],
    image: Optional[UploadFile],
    accounts: AccountService,
    images: DiskImageStorage,
) -> PlainTextResponse:
    # Unknown accounts must not leave an orphan file behind.
    accounts.resolve(kind, email, admin_type)
    ref = None
    if image is not None and image.filename:
        ref = images.save(image.filename, await image.read())
    accounts.set_profile_image(kind, email, ref, admin_type)
    return PlainTextResponse("Image uploaded successfully")


@router.post("/upload-image-user")
async def upload_image_user(
    email: str = Form(""),
    image: Optional[UploadFile] = File(None),
    accounts: AccountService = Depends(get_accounts),
    images: DiskImageStorage = Depends(get_images),
):
    logger.info("POST /upload-image-user email=%s", email)
    return await _upload_image("user", email, None, image, accounts, images)


@router.post("/upload-image-admin")
async def upload_image_admin(
    email: str = Form(""),
    admin_type: str = Form(""),
    image: Optional[UploadFile] = File(None),
    accounts: AccountService = Depends(get_accounts),
    images: DiskImageStorage = Depends(get_images),
):
    logger.info("POST /upload-image-admin email=%s admin_type=%s", email, admin_type)
    return await _upload_image("admin", email, admin_type, image, accounts, images)


@router.get("/get-emergency-messages")
def emergency_messages():
    logger.info("GET /get-emergency-messages")
    return get_emergency_messages()


async def _account_error_handler(request: Request, exc: AccountError) -> PlainTextResponse:
    if exc.internal:
        logger.error("%s %s failed", request.method, request.url.path, exc_info=exc)
        return PlainTextResponse("Internal server error", status_code=exc.status_code)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[AccountStore] = None,
    codec: Optional[PasswordCodec] = None,
    images: Optional[DiskImageStorage] = None,
) -> FastAPI:
    """Build the application. Collaborators default to the configured MongoDB/disk ones."""
    settings = settings or get_settings()
    client: Optional[MongoClient] = None
    if store is None:
        # MongoClient connects lazily; nothing is contacted until first use.
        client = MongoClient(settings.mongo_uri)
        store = MongoAccountStore(client[settings.db_name])

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(store, MongoAccountStore):
            # Serving without the unique indexes is not allowed; a failure aborts startup.
            store.ensure_indexes()
            logger.info("MongoDB connected, account indexes ready")
        yield
        if client is not None:
            client.close()

    app = FastAPI(title="SafeAlert Accounts", lifespan=lifespan)
    app.state.accounts = AccountService(store, codec or PasswordCodec.from_settings(settings))
    app.state.images = images or DiskImageStorage(settings.uploads_dir)

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.add_exception_handler(AccountError, _account_error_handler)
    app.include_router(router)

    app.mount("/uploads", StaticFiles(directory=str(app.state.images.root)), name="uploads")
    if settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(settings.public_dir), html=True), name="public")

    return app

