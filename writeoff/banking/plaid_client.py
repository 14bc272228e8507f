"""Plaid API adapter.

Every method takes the user's stored access token and returns plain
dictionaries. Errors from the SDK propagate to the caller.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

import plaid
from plaid.api import plaid_api
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.institutions_get_by_id_request import InstitutionsGetByIdRequest
from plaid.model.item_get_request import ItemGetRequest
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.item_remove_request import ItemRemoveRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_get_request import TransactionsGetRequest
from plaid.model.transactions_get_request_options import TransactionsGetRequestOptions

from ..utils.config import (
    PLAID_CLIENT_ID,
    PLAID_CLIENT_NAME,
    PLAID_COUNTRY_CODES,
    PLAID_ENV,
    PLAID_PAGE_SIZE,
    PLAID_SECRET,
)

logger = logging.getLogger(__name__)

PLAID_HOSTS = {
    "sandbox": plaid.Environment.Sandbox,
    "production": plaid.Environment.Production,
}


def build_plaid_api(client_id: str, secret: str, env: str = "sandbox") -> plaid_api.PlaidApi:
    if env not in PLAID_HOSTS:
        raise ValueError(f"Unknown PLAID_ENV '{env}', expected one of {sorted(PLAID_HOSTS)}")
    configuration = plaid.Configuration(
        host=PLAID_HOSTS[env],
        api_key={
            "clientId": client_id,
            "secret": secret,
        },
    )
    return plaid_api.PlaidApi(plaid.ApiClient(configuration))


class PlaidClient:
    """Thin wrapper over ``plaid_api.PlaidApi``."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        secret: Optional[str] = None,
        env: Optional[str] = None,
        api: Optional[plaid_api.PlaidApi] = None,
    ):
        if api is None:
            client_id = client_id or PLAID_CLIENT_ID
            secret = secret or PLAID_SECRET
            if not client_id or not secret:
                raise ValueError("Plaid credentials not set in .env")
            api = build_plaid_api(client_id, secret, env or PLAID_ENV)
        self.api = api
        self.country_codes = [CountryCode(code) for code in PLAID_COUNTRY_CODES]

    def create_link_token(self, user_id: str) -> str:
        """Generates a Link Token to initialize Plaid Link on the client side."""
        request = LinkTokenCreateRequest(
            products=[Products("transactions")],
            client_name=PLAID_CLIENT_NAME,
            country_codes=self.country_codes,
            language="en",
            user=LinkTokenCreateRequestUser(client_user_id=user_id),
        )
        response = self.api.link_token_create(request)
        return response["link_token"]

    def exchange_public_token(self, public_token: str) -> Tuple[str, str]:
        """Exchanges the public token (from Plaid Link) for an access token."""
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        response = self.api.item_public_token_exchange(request)
        return response["access_token"], response["item_id"]

    def get_accounts(self, access_token: str) -> List[Dict]:
        request = AccountsGetRequest(access_token=access_token)
        return self.api.accounts_get(request).to_dict().get("accounts", [])

    def get_transactions(
        self,
        access_token: str,
        start_date: date,
        end_date: date,
        account_ids: Optional[List[str]] = None,
    ) -> Dict:
        """Fetch every transaction in the date range, following pagination.

        Returns a dict with ``transactions`` and the ``request_id`` of the
        last page.
        """
        transactions: List[Dict] = []
        request_id = None
        while True:
            option_kwargs = {"count": PLAID_PAGE_SIZE, "offset": len(transactions)}
            if account_ids:
                option_kwargs["account_ids"] = account_ids
            request = TransactionsGetRequest(
                access_token=access_token,
                start_date=start_date,
                end_date=end_date,
                options=TransactionsGetRequestOptions(**option_kwargs),
            )
            page = self.api.transactions_get(request).to_dict()
            batch = page.get("transactions", [])
            transactions.extend(batch)
            request_id = page.get("request_id")
            total = page.get("total_transactions", len(transactions))
            if not batch or len(transactions) >= total:
                break

        logger.debug(f"Fetched {len(transactions)} transactions from Plaid")
        return {"transactions": transactions, "request_id": request_id}

    def get_item(self, access_token: str) -> Dict:
        request = ItemGetRequest(access_token=access_token)
        return self.api.item_get(request).to_dict()["item"]

    def get_institution(self, institution_id: str) -> Dict:
        request = InstitutionsGetByIdRequest(
            institution_id=institution_id,
            country_codes=self.country_codes,
        )
        return self.api.institutions_get_by_id(request).to_dict()["institution"]

    def remove_item(self, access_token: str) -> None:
        request = ItemRemoveRequest(access_token=access_token)
        self.api.item_remove(request)
