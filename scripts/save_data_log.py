# scripts/save_data_log.py
# ローカルのデータログ（MAPDRAW_DATA_DIR/map_data_log.json）を API へ送信する
# 使い方: MAPDRAW_TOKEN=<access token> python scripts/save_data_log.py
import logging
import os
import sys

from mapdraw import config
from mapdraw.services.datalog.storage import FileStorage
from mapdraw.services.datalog.store import DataLog
from mapdraw.services.save.client import PinAreaClient
from mapdraw.services.save.flow import save_and_complete

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

token = os.getenv("MAPDRAW_TOKEN")
if not token:
    sys.exit("MAPDRAW_TOKEN is not set")

log = DataLog(FileStorage(config.DATA_DIR))
with PinAreaClient(token) as client:
    report = save_and_complete(log, client)

for entry_id, row in report.saved.items():
    print("saved ", entry_id, "->", row.get("id"))
for entry_id, err in report.failed.items():
    print("failed", entry_id, err)
sys.exit(0 if report.ok else 1)
