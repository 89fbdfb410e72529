"""凭据存储。

设备身份保存在单个 SQLite 文件中（默认 ``session.db``）。重连失败时文件
会被重命名为带时间戳的备份，而不是直接删除，方便运维检查或恢复。
"""

import json
import os
import sqlite3
import time
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Callable

from loguru import logger

from tasktracker.bus.events import Device
from tasktracker.utils.helpers import ensure_dir

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS device (
    jid         TEXT PRIMARY KEY,
    credentials TEXT NOT NULL,
    push_name   TEXT NOT NULL DEFAULT '',
    paired_at   TEXT NOT NULL
)
"""


class SessionStoreError(Exception):
    """凭据文件无法读取或写入。"""


class SessionStore:
    """类说明：SessionStore。"""
    
    def __init__(self, path: str | Path = "session.db", clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self._clock = clock
    
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        conn.execute(_CREATE_TABLE_SQL)
        return conn
    
    def load(self) -> Device | None:
        """读取已保存的设备；文件不存在时返回 None，且不会创建文件。"""
        if not self.path.exists():
            return None
        
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT jid, credentials, push_name, paired_at FROM device ORDER BY paired_at LIMIT 1"
                ).fetchone()
        except sqlite3.Error as e:
            raise SessionStoreError(f"Failed to read session store {self.path}: {e}") from e
        
        if row is None:
            return None
        
        try:
            credentials = json.loads(row["credentials"])
        except json.JSONDecodeError as e:
            raise SessionStoreError(f"Corrupt credentials in {self.path}: {e}") from e
        
        return Device(
            jid=row["jid"],
            credentials=credentials,
            push_name=row["push_name"],
            paired_at=datetime.fromisoformat(row["paired_at"]),
        )
    
    def save(self, device: Device) -> None:
        """保存配对得到的设备，文件中只保留这一台设备。"""
        try:
            ensure_dir(self.path.parent)
            with closing(self._connect()) as conn, conn:
                conn.execute("DELETE FROM device")
                conn.execute(
                    "INSERT INTO device (jid, credentials, push_name, paired_at) VALUES (?, ?, ?, ?)",
                    (
                        device.jid,
                        json.dumps(device.credentials),
                        device.push_name,
                        device.paired_at.isoformat(),
                    ),
                )
        except (sqlite3.Error, OSError) as e:
            raise SessionStoreError(f"Failed to write session store {self.path}: {e}") from e
    
    def backup_path(self) -> Path:
        """函数说明：backup_path。"""
        return self.path.with_name(f"{self.path.name}.backup.{int(self._clock())}")
    
    def invalidate_and_backup(self) -> Path | None:
        """把凭据文件重命名为 ``<name>.backup.<unix 时间戳>``。

        返回备份路径；没有文件或重命名失败时返回 None。失败只记录日志，不抛出。
        """
        if not self.path.exists():
            return None
        
        backup = self.backup_path()
        try:
            os.rename(self.path, backup)
        except OSError as e:
            logger.error(f"Failed to back up {self.path}: {e}")
            return None
        
        logger.info(f"Backed up {self.path} to {backup}")
        return backup
