from .sqlalchemy_source import fetch_result_document, format_psql_html
from .utility_runner import UtilityError, run_utility
