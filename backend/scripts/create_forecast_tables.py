import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)) + '/..')

from settings import settings
from repo_forecasts import PostgresForecastStore

print('Connecting to', settings.db_url)
PostgresForecastStore(settings.db_url).ensure_schema()
print('DDL applied')
