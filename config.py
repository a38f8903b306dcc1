import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./invoices.db")
    STORAGE_BACKEND = data.get("STORAGE_BACKEND", "database")  # database | json_file | memory
    DATA_DIR = data.get("DATA_DIR", os.path.join(ROOT_PATH, "data"))
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Invoice numbering and rendering
    INVOICE_STARTING_NUMBER = int(data.get("INVOICE_STARTING_NUMBER", 1))
    RENDER_TIMEOUT_SECONDS = float(data.get("RENDER_TIMEOUT_SECONDS", 30))
    CURRENCY = data.get("CURRENCY", "EUR")

    # Issuer identity printed on invoices
    COMPANY_NAME = data.get("COMPANY_NAME", "My Company")
    COMPANY_ADDRESS = data.get("COMPANY_ADDRESS", "")
    COMPANY_REG_CODE = data.get("COMPANY_REG_CODE", "")
    COMPANY_PHONE = data.get("COMPANY_PHONE", "")
    COMPANY_EMAIL = data.get("COMPANY_EMAIL", "")
    COMPANY_BANK = data.get("COMPANY_BANK", "")
    VAT_NOTE = data.get("VAT_NOTE", "Not a VAT registered company")
    LATE_FEE_NOTE = data.get("LATE_FEE_NOTE", "Late payment fee: 0.15% per day")

    # Invoice delivery
    SMTP_HOST = data.get("SMTP_HOST", None)
    SMTP_PORT = int(data.get("SMTP_PORT", 587))
    SMTP_USER = data.get("SMTP_USER", None)
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", None)
    SMTP_USE_TLS = bool(data.get("SMTP_USE_TLS", True))
    EMAIL_FROM_NAME = data.get("EMAIL_FROM_NAME", None)
    EMAIL_REDIRECT_TO = data.get("EMAIL_REDIRECT_TO", None)  # dev mode: every mail goes here
    NOTIFICATION_WEBHOOK = data.get("NOTIFICATION_WEBHOOK", None)
