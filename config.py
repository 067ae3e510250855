"""Configuration settings for the GResources server."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

# Storage limits
MAX_RESOURCE_SIZE = int(os.getenv('MAX_RESOURCE_SIZE', 5 * 1024 * 1024))  # 5MB

# Path constraints
MAX_FOLDER_DEPTH = int(os.getenv('MAX_FOLDER_DEPTH', 5))
MAX_RESOURCE_NAME_LENGTH = int(os.getenv('MAX_RESOURCE_NAME_LENGTH', 100))

# Single-owner deployment
DEFAULT_OWNER_ID = int(os.getenv('DEFAULT_OWNER_ID', 1))

# Database
DB_FILE_PATH = os.getenv('DB_FILE_PATH', './db/gresources.db')
DB_SCHEMA_PATH = os.getenv('DB_SCHEMA_PATH', str(BASE_DIR / 'schema.sql'))

# Server
HOST = os.getenv('HOST', '127.0.0.1')
PORT = int(os.getenv('PORT', 8080))

# Logging
LOG_DIR = os.getenv('LOG_DIR', './logs')
LOG_FILE_NAME = os.getenv('LOG_FILE_NAME', 'gresources.log')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
APP_ENV = os.getenv('APP_ENV', 'development')

# Logz.io shipping is only enabled when a token is provided
LOGZIO_TOKEN = os.getenv('LOGZIO_TOKEN', '')
LOGZIO_URL = os.getenv('LOGZIO_URL', 'https://listener-eu.logz.io:8071')

# Store failure alerting
STORE_FAILURE_THRESHOLD = int(os.getenv('STORE_FAILURE_THRESHOLD', 5))
STORE_FAILURE_WINDOW = int(os.getenv('STORE_FAILURE_WINDOW', 60))
