"""
Bank connection and transaction ingestion.

Pulls accounts and transactions from Plaid for one user, classifies every
transaction in arrival order and stores the result. Classification failures
never abort a batch: the row is stored with the manual-review verdict.
"""

import logging
import traceback
from datetime import date, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..agents.deduction_analyzer import DeductionAnalyzer
from ..banking.plaid_client import PlaidClient
from ..db import crud
from ..db.models import TransactionSource, User
from ..db.user_lookup import UserLookup
from ..models.results import ErrorKind, Result
from ..models.verdict import DeductionVerdict
from ..utils.config import DEFAULT_CATEGORY, DEFAULT_MERCHANT, LOOKBACK_DAYS
from .expenses import manual_account_id

logger = logging.getLogger(__name__)

NO_TOKEN_ERROR = "No Plaid token found"


def normalize_transaction(txn: Dict, account_id: str) -> Dict:
    """Map a Plaid transaction onto the transactions table columns."""
    merchant = txn.get("merchant_name") or txn.get("name") or DEFAULT_MERCHANT

    labels = txn.get("category") or []
    if labels:
        category = ", ".join(labels)
    else:
        pfc = txn.get("personal_finance_category") or {}
        category = pfc.get("primary") or DEFAULT_CATEGORY

    txn_date = txn["date"]
    if isinstance(txn_date, str):
        txn_date = date.fromisoformat(txn_date)

    return {
        "trans_id": txn["transaction_id"],
        "account_id": account_id,
        "date": txn_date,
        "amount": abs(txn.get("amount") or 0),
        "merchant_name": merchant,
        "category": category,
        "source": TransactionSource.PLAID,
    }


class TransactionIngestor:
    """Orchestrates Plaid, the analyzer and storage for one user at a time."""

    def __init__(
        self,
        plaid_client: PlaidClient,
        analyzer: Optional[DeductionAnalyzer],
        db: Session,
        user_lookup: Optional[UserLookup] = None,
        lookback_days: int = LOOKBACK_DAYS,
    ):
        self.plaid = plaid_client
        self.analyzer = analyzer
        self.db = db
        self.user_lookup = user_lookup or UserLookup.for_sessions(db)
        self.lookback_days = lookback_days

    def _access_token(self, user_id: str) -> Optional[str]:
        user: Optional[User] = self.user_lookup.get_user(user_id)
        if user is None or not user.plaid_token:
            return None
        return user.plaid_token

    def create_link_token(self, user_id: str) -> Result:
        try:
            link_token = self.plaid.create_link_token(user_id)
        except Exception as e:
            logger.error(f"Error creating link token: {str(e)}")
            logger.error(traceback.format_exc())
            return Result.fail(ErrorKind.UPSTREAM, "Failed to create link token")
        return Result.ok(link_token=link_token)

    def exchange_public_token(self, user_id: str, public_token: str) -> Result:
        """Exchange a Link public token and store the access token on the user."""
        try:
            access_token, item_id = self.plaid.exchange_public_token(public_token)
            accounts = self.plaid.get_accounts(access_token)
        except Exception as e:
            logger.error(f"Error exchanging public token: {str(e)}")
            logger.error(traceback.format_exc())
            return Result.fail(ErrorKind.UPSTREAM, "Failed to exchange public token")

        updates = {"plaid_token": access_token, "plaid_item_id": item_id}
        try:
            if crud.user_exists(self.db, user_id):
                crud.update_user(self.db, user_id, updates)
            else:
                crud.create_user(self.db, user_id, **updates)
        except Exception as e:
            logger.error(f"Error updating user profile: {str(e)}")
            self.db.rollback()
            return Result.fail(ErrorKind.UPSTREAM, "Failed to save bank connection")

        logger.info(f"Bank connected for user {user_id}: {len(accounts)} accounts")
        return Result.ok(item_id=item_id, accounts=accounts)

    def _classify(self, transaction_data: Dict) -> DeductionVerdict:
        if self.analyzer is None:
            return DeductionVerdict.manual_review()
        try:
            analysis = self.analyzer.analyze_transaction(transaction_data)
        except Exception as e:
            logger.warning(
                f"Classification raised for {transaction_data['trans_id']}: {str(e)}"
            )
            return DeductionVerdict.manual_review()
        if not analysis.success:
            return DeductionVerdict.manual_review()
        return analysis["verdict"]

    def fetch_transactions(self, user_id: str) -> Result:
        """Import, classify and store the last ``lookback_days`` of transactions.

        Returns ``Result.ok(count=N)`` with the number of transactions
        processed, whether or not each classification succeeded.
        """
        access_token = self._access_token(user_id)
        if not access_token:
            return Result.fail(ErrorKind.MISSING_CREDENTIAL, NO_TOKEN_ERROR)

        try:
            plaid_accounts = self.plaid.get_accounts(access_token)
        except Exception as e:
            logger.error(f"Error fetching accounts: {str(e)}")
            logger.error(traceback.format_exc())
            return Result.fail(ErrorKind.UPSTREAM, "Failed to fetch accounts")

        try:
            known_ids = crud.get_account_ids(self.db, user_id)
            for account in plaid_accounts:
                account_id = account["account_id"]
                if account_id not in known_ids:
                    crud.add_account(self.db, account_id, user_id)
                    known_ids.add(account_id)
        except Exception as e:
            logger.error(f"Error storing accounts: {str(e)}")
            logger.error(traceback.format_exc())
            self.db.rollback()
            return Result.fail(ErrorKind.UPSTREAM, "Failed to store accounts")

        end_date = date.today()
        start_date = end_date - timedelta(days=self.lookback_days)

        total_transactions = 0
        for account in plaid_accounts:
            account_id = account["account_id"]
            try:
                response = self.plaid.get_transactions(
                    access_token, start_date, end_date, account_ids=[account_id]
                )
            except Exception as e:
                logger.error(f"Error fetching transactions: {str(e)}")
                logger.error(traceback.format_exc())
                return Result.fail(ErrorKind.UPSTREAM, "Failed to fetch transactions")

            for txn in response["transactions"]:
                try:
                    transaction_data = normalize_transaction(txn, account_id)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(
                        f"Skipping malformed transaction {txn.get('transaction_id')}: {str(e)}"
                    )
                    continue
                transaction_data.update(self._classify(transaction_data).as_updates())
                try:
                    crud.save_transaction(self.db, transaction_data)
                except Exception as e:
                    logger.error(
                        f"Database error adding transaction {transaction_data['trans_id']}: {str(e)}"
                    )
                    self.db.rollback()
                total_transactions += 1

            if response.get("request_id"):
                try:
                    crud.update_account(
                        self.db, account_id, last_cursor=response["request_id"]
                    )
                except Exception as e:
                    logger.error(f"Error updating cursor for {account_id}: {str(e)}")
                    self.db.rollback()

        logger.info(f"Processed {total_transactions} transactions for user {user_id}")
        return Result.ok(count=total_transactions)

    def get_account_balances(self, user_id: str) -> Result:
        access_token = self._access_token(user_id)
        if not access_token:
            return Result.fail(ErrorKind.MISSING_CREDENTIAL, NO_TOKEN_ERROR)
        try:
            accounts = self.plaid.get_accounts(access_token)
        except Exception as e:
            logger.error(f"Error fetching account balances: {str(e)}")
            return Result.fail(ErrorKind.UPSTREAM, "Failed to fetch account balances")
        return Result.ok(accounts=accounts)

    def get_institution_info(self, user_id: str) -> Result:
        access_token = self._access_token(user_id)
        if not access_token:
            return Result.fail(ErrorKind.MISSING_CREDENTIAL, NO_TOKEN_ERROR)
        try:
            item = self.plaid.get_item(access_token)
            institution = self.plaid.get_institution(item["institution_id"])
        except Exception as e:
            logger.error(f"Error fetching institution info: {str(e)}")
            return Result.fail(ErrorKind.UPSTREAM, "Failed to fetch institution info")
        return Result.ok(institution=institution)

    def remove_connection(self, user_id: str) -> Result:
        """Disconnect the bank and delete the user's imported data.

        Manually entered expenses are kept.
        """
        access_token = self._access_token(user_id)
        if not access_token:
            return Result.fail(ErrorKind.MISSING_CREDENTIAL, NO_TOKEN_ERROR)

        try:
            self.plaid.remove_item(access_token)
        except Exception as e:
            # Local data is still removed so the user can reconnect
            logger.warning(f"Plaid item removal failed: {str(e)}")

        try:
            bank_account_ids = crud.get_account_ids(self.db, user_id) - {
                manual_account_id(user_id)
            }
            deleted = crud.delete_transactions_for_accounts(self.db, bank_account_ids)
            crud.delete_accounts(self.db, bank_account_ids)
            crud.update_user(
                self.db, user_id, {"plaid_token": None, "plaid_item_id": None}
            )
        except Exception as e:
            logger.error(f"Error removing bank data for {user_id}: {str(e)}")
            logger.error(traceback.format_exc())
            self.db.rollback()
            return Result.fail(ErrorKind.UPSTREAM, "Failed to remove bank connection")

        logger.info(f"Removed bank connection for {user_id} ({deleted} transactions)")
        return Result.ok(deleted=deleted)
