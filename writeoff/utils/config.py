# writeoff/utils/config.py
import os

from dotenv import load_dotenv

load_dotenv()

# Storage
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///writeoff.db")
# Optional second source for user lookups (read replica / public role)
DATABASE_READ_URL = os.getenv("DATABASE_READ_URL")

# Plaid
PLAID_CLIENT_ID = os.getenv("PLAID_CLIENT_ID")
PLAID_SECRET = os.getenv("PLAID_SECRET")
PLAID_ENV = os.getenv("PLAID_ENV", "sandbox")
PLAID_CLIENT_NAME = "WriteOff"
PLAID_COUNTRY_CODES = ["US"]
PLAID_PAGE_SIZE = 100

# OpenAI
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4")

# Logging
LOG_LEVEL = os.getenv("WRITEOFF_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("WRITEOFF_LOG_FILE")

# Web
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("WRITEOFF_CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Ingestion window, in days before today
LOOKBACK_DAYS = 90

# Share of deductible spend shown as estimated tax savings on the dashboard
TAX_SAVINGS_RATE = 0.3

# Verdict stored when a transaction could not be classified
MANUAL_REVIEW_REASON = "Requires manual review"
NO_REASON_PROVIDED = "No reason provided"
MANUAL_ENTRY_REASON = "Entered manually"

DEFAULT_MERCHANT = "Unknown Merchant"
DEFAULT_CATEGORY = "Uncategorized"

# Category or merchant fragments treated as revenue on the dashboard
INCOME_KEYWORDS = ["deposit", "transfer", "payroll", "income"]

# Categories offered by the expense form
EXPENSE_CATEGORIES = [
    "Office Supplies",
    "Software & Subscriptions",
    "Meals & Entertainment",
    "Travel & Transportation",
    "Professional Services",
    "Equipment & Hardware",
    "Marketing & Advertising",
    "Training & Education",
    "Utilities",
    "Rent & Facilities",
    "Insurance",
    "Other",
]

PERIODS = ["All Time", "This Month", "Last Month", "This Quarter", "This Year"]

SORT_OPTIONS = {
    "date-desc": "Newest First",
    "date-asc": "Oldest First",
    "amount-desc": "Highest Amount",
    "amount-asc": "Lowest Amount",
    "description": "Description A-Z",
}

USER_PROFILE_FIELDS = ["full_name", "profession", "income", "state", "filing_status"]

# Chat completion settings per prompt
COMPLETION_SETTINGS = {
    "analyze_transaction": {"max_tokens": 150, "temperature": 0.1},
    "tax_summary": {"max_tokens": 500, "temperature": 0.3},
}

SYSTEM_MESSAGES = {
    "analyze_transaction": "You are a tax expert specializing in business deductions. Provide accurate, conservative analysis.",
    "tax_summary": "You are a tax professional providing clear, actionable advice.",
}

PROMPTS = {
    "analyze_transaction": """
Analyze this transaction for tax deductibility:

Transaction: {merchant_name}
Amount: ${amount}
Category: {category}
Date: {date}

Determine if this transaction is tax deductible for a business owner. Consider:
1. Is it a legitimate business expense?
2. Is it ordinary and necessary for the business?
3. Is it directly related to business operations?

Respond in this exact format:
Yes/No, [brief reason], [confidence score]%

Example: "Yes, Office supplies for business operations, 85%"
Example: "No, Personal entertainment expense, 95%"
""",
    "tax_summary": """
Generate a tax summary for business deductions:

Total transactions: {total_count}
Deductible transactions: {deductible_count}
Total deductible amount: ${total_deductible}

Deductible transactions:
{deductible_lines}

Provide a brief summary of the tax implications and any recommendations.
""",
}
