#!/usr/bin/env python3
"""CLI Entrypoint - 期限リマインダーを1回だけ実行する

使い方:
    python -m ewarrants.entrypoints.cli [--date YYYY-MM-DD]

--date を省略した場合は REMINDER_TIMEZONE 基準の今日を使う。

環境変数:
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR) デフォルト: INFO
    K_SERVICE / CLOUD_RUN_JOB: Cloud Run 環境では自動設定されJSON形式ログに切替
"""

import argparse
import asyncio
import datetime
import logging
import sys

from ewarrants.domain.expiry import today_in
from ewarrants.entrypoints.api.deps import build_reminder_job, get_config
from ewarrants.logging_config import setup_logging


def main(argv=None):
    """メインエントリーポイント"""
    setup_logging()
    logger = logging.getLogger(__name__)

    parser = argparse.ArgumentParser(description="Send eWarrants expiry reminders once")
    parser.add_argument("--date", type=datetime.date.fromisoformat, default=None)
    args = parser.parse_args(argv)

    try:
        config = get_config()
        today = args.date or today_in(config.tz)
        logger.info("Running expiry reminders for %s", today.isoformat())

        summary = asyncio.run(build_reminder_job(config).run(today))

        if summary.errors:
            logger.warning("%d user(s) had errors", summary.errors)
            sys.exit(1)

        logger.info("Expiry reminders sent: %d", summary.sent)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
