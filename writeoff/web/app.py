"""
WriteOff API

JSON routes behind the dashboard. Each handler validates its parameters,
delegates to a service and maps the service ``Result`` onto a response:
``{"success": true, ...}`` or ``{"error": "..."}`` with 400/404/500.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.orm import Session

from ..agents.deduction_analyzer import DeductionAnalyzer
from ..banking.plaid_client import PlaidClient
from ..db import crud
from ..db.database import init_db
from ..db.user_lookup import UserLookup
from ..models.results import ErrorKind, Result
from ..reports.dashboard import calculate_stats, filter_transactions
from ..services import expenses, profiles
from ..services.ingestion import TransactionIngestor
from ..utils.config import CORS_ORIGINS, EXPENSE_CATEGORIES
from ..utils.logging_config import configure_logging
from ..utils.openai_client import OpenAIClient
from .dependencies import (
    get_db,
    get_llm_client,
    get_optional_llm_client,
    get_plaid_client,
    get_read_db,
)
from .schemas import (
    AnalyzeTransactionRequest,
    ExpenseCreate,
    ProfileCreate,
    ProfileUpdate,
    PublicTokenRequest,
    UserIdRequest,
)

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.MISSING_CREDENTIAL: 400,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 500,
}

USER_ID_REQUIRED = "User ID is required"


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def validation_message(exc: RequestValidationError) -> str:
    """First validation error as a short message, e.g. "amount: Input should be a valid number"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    if not field and first.get("type") == "missing":
        return "Request body is required"
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def respond(result: Result) -> JSONResponse:
    if result.success:
        return JSONResponse(jsonable_encoder(result.as_dict()))
    return error_response(result.error, STATUS_BY_KIND.get(result.error_kind, 500))


def _ingestor(
    db: Session,
    read_db: Optional[Session],
    plaid_client: PlaidClient,
    llm: Optional[OpenAIClient] = None,
) -> TransactionIngestor:
    analyzer = DeductionAnalyzer(llm, db) if llm is not None else None
    return TransactionIngestor(
        plaid_client,
        analyzer,
        db,
        user_lookup=UserLookup.for_sessions(db, read_db),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="WriteOff API",
        description="Bank transaction import and tax-deduction classification",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(validation_message(exc), 400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {str(exc)}")
        logger.error(traceback.format_exc())
        return error_response("Internal server error", 500)

    # --- Transactions ---

    @app.get("/api/transactions")
    def list_transactions(
        user_id: Optional[str] = Query(None, alias="userId"),
        db: Session = Depends(get_db),
    ):
        if not user_id:
            return error_response(USER_ID_REQUIRED, 400)
        try:
            transactions = crud.get_transactions(db, user_id)
        except Exception as e:
            logger.error(f"Error fetching transactions: {str(e)}")
            return error_response("Failed to fetch transactions", 500)
        return respond(Result.ok(transactions=[t.as_dict() for t in transactions]))

    @app.get("/api/transactions/filter")
    def search_transactions(
        user_id: Optional[str] = Query(None, alias="userId"),
        search: Optional[str] = None,
        category: str = "All",
        period: str = "All Time",
        sort_by: str = Query("date-desc", alias="sortBy"),
        db: Session = Depends(get_db),
    ):
        if not user_id:
            return error_response(USER_ID_REQUIRED, 400)
        try:
            rows = filter_transactions(
                crud.get_transactions(db, user_id),
                search=search,
                category=category,
                period=period,
                sort_by=sort_by,
            )
        except ValueError as e:
            return error_response(str(e), 400)
        return respond(Result.ok(transactions=rows))

    @app.get("/api/dashboard/stats")
    def dashboard_stats(
        user_id: Optional[str] = Query(None, alias="userId"),
        db: Session = Depends(get_db),
    ):
        if not user_id:
            return error_response(USER_ID_REQUIRED, 400)
        stats = calculate_stats(crud.get_transactions(db, user_id))
        return respond(Result.ok(stats=stats))

    # --- Plaid ---

    @app.post("/api/plaid/create-link-token")
    def create_link_token(
        body: UserIdRequest,
        db: Session = Depends(get_db),
        read_db: Optional[Session] = Depends(get_read_db),
        plaid_client: PlaidClient = Depends(get_plaid_client),
    ):
        if not body.user_id:
            return error_response(USER_ID_REQUIRED, 400)
        return respond(_ingestor(db, read_db, plaid_client).create_link_token(body.user_id))

    @app.post("/api/plaid/exchange-public-token")
    def exchange_public_token(
        body: PublicTokenRequest,
        db: Session = Depends(get_db),
        read_db: Optional[Session] = Depends(get_read_db),
        plaid_client: PlaidClient = Depends(get_plaid_client),
    ):
        if not body.public_token or not body.user_id:
            return error_response("Public token and user ID are required", 400)
        result = _ingestor(db, read_db, plaid_client).exchange_public_token(
            body.user_id, body.public_token
        )
        return respond(result)

    @app.post("/api/plaid/transactions")
    def fetch_transactions(
        body: UserIdRequest,
        db: Session = Depends(get_db),
        read_db: Optional[Session] = Depends(get_read_db),
        plaid_client: PlaidClient = Depends(get_plaid_client),
        llm: Optional[OpenAIClient] = Depends(get_optional_llm_client),
    ):
        if not body.user_id:
            return error_response(USER_ID_REQUIRED, 400)
        ingestor = _ingestor(db, read_db, plaid_client, llm)
        return respond(ingestor.fetch_transactions(body.user_id))

    @app.get("/api/plaid/accounts")
    def account_balances(
        user_id: Optional[str] = Query(None, alias="userId"),
        db: Session = Depends(get_db),
        read_db: Optional[Session] = Depends(get_read_db),
        plaid_client: PlaidClient = Depends(get_plaid_client),
    ):
        if not user_id:
            return error_response(USER_ID_REQUIRED, 400)
        return respond(_ingestor(db, read_db, plaid_client).get_account_balances(user_id))

    @app.get("/api/plaid/institution")
    def institution_info(
        user_id: Optional[str] = Query(None, alias="userId"),
        db: Session = Depends(get_db),
        read_db: Optional[Session] = Depends(get_read_db),
        plaid_client: PlaidClient = Depends(get_plaid_client),
    ):
        if not user_id:
            return error_response(USER_ID_REQUIRED, 400)
        return respond(_ingestor(db, read_db, plaid_client).get_institution_info(user_id))

    @app.post("/api/plaid/remove-connection")
    def remove_connection(
        body: UserIdRequest,
        db: Session = Depends(get_db),
        read_db: Optional[Session] = Depends(get_read_db),
        plaid_client: PlaidClient = Depends(get_plaid_client),
    ):
        if not body.user_id:
            return error_response(USER_ID_REQUIRED, 400)
        return respond(_ingestor(db, read_db, plaid_client).remove_connection(body.user_id))

    # --- OpenAI ---

    @app.post("/api/openai/analyze-transaction")
    def analyze_transaction(
        body: AnalyzeTransactionRequest,
        llm: OpenAIClient = Depends(get_llm_client),
    ):
        if not body.transaction:
            return error_response("Transaction data is required", 400)
        result = DeductionAnalyzer(llm).analyze_transaction(body.transaction)
        if not result.success:
            return respond(result)
        return respond(Result.ok(analysis=result["verdict"].model_dump()))

    @app.post("/api/openai/analyze-all")
    def analyze_all(
        body: UserIdRequest,
        db: Session = Depends(get_db),
        llm: OpenAIClient = Depends(get_llm_client),
    ):
        if not body.user_id:
            return error_response(USER_ID_REQUIRED, 400)
        return respond(DeductionAnalyzer(llm, db).analyze_all_transactions(body.user_id))

    @app.post("/api/openai/tax-summary")
    def tax_summary(
        body: UserIdRequest,
        db: Session = Depends(get_db),
        llm: OpenAIClient = Depends(get_llm_client),
    ):
        if not body.user_id:
            return error_response(USER_ID_REQUIRED, 400)
        return respond(DeductionAnalyzer(llm, db).generate_tax_summary(body.user_id))

    # --- Expenses ---

    @app.get("/api/expenses/categories")
    def expense_categories():
        return respond(Result.ok(categories=EXPENSE_CATEGORIES))

    @app.post("/api/expenses")
    def add_expense(body: ExpenseCreate, db: Session = Depends(get_db)):
        if not body.user_id:
            return error_response(USER_ID_REQUIRED, 400)
        result = expenses.add_manual_expense(
            db,
            body.user_id,
            description=body.description,
            amount=body.amount,
            category=body.category,
            expense_date=body.expense_date,
            is_deductible=body.is_deductible,
            notes=body.notes,
        )
        return respond(result)

    # --- Users ---

    @app.post("/api/users")
    def create_user(body: ProfileCreate, db: Session = Depends(get_db)):
        if not body.id:
            return error_response(USER_ID_REQUIRED, 400)
        values = body.model_dump(exclude={"id"}, exclude_none=True)
        return respond(profiles.create_profile(db, body.id, values))

    @app.get("/api/users/{user_id}")
    def get_user(user_id: str, db: Session = Depends(get_db)):
        return respond(profiles.get_profile(db, user_id))

    @app.put("/api/users/{user_id}")
    def update_user(user_id: str, body: ProfileUpdate, db: Session = Depends(get_db)):
        return respond(
            profiles.update_profile(db, user_id, body.model_dump(exclude_none=True))
        )

    @app.delete("/api/users/{user_id}")
    def delete_user(user_id: str, db: Session = Depends(get_db)):
        return respond(profiles.delete_profile(db, user_id))

    # --- Setup ---

    @app.post("/api/create-table")
    def create_tables(db: Session = Depends(get_db)):
        try:
            init_db(bind=db.get_bind())
        except Exception as e:
            logger.error(f"Error creating tables: {str(e)}")
            logger.error(traceback.format_exc())
            return error_response("Failed to create tables", 500)
        return respond(Result.ok(message="Tables created"))

    return app


configure_logging()
app = create_app()
