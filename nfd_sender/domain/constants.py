"""
Domain constants used across services.
"""

# NFD vault API
NFD_API_BASE_URL = "https://api.nf.domains"
NFD_SEND_TO_PATH = "/nfd/vault/sendTo/{handle}"

# ASA paid out by the batch
DEFAULT_ASSET_ID = 1285225688

# Failure report columns
REPORT_HEADER = ("NFD", "Amount", "Error")

# Algorand caps an atomic group at 16 transactions
MAX_GROUP_SIZE = 16
