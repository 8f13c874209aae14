#!/usr/bin/env python3
import logging
import os
import sys
import threading

sys.path.append(os.path.dirname(os.path.abspath(__file__)))


def global_exception_handler(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger = logging.getLogger("kiwimenu")
    logger.error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback),
        extra={"thread_name": threading.current_thread().name},
    )


sys.excepthook = global_exception_handler


def main():
    from kiwimenu.ui.gtk_app import run

    try:
        return run(["kiwimenu"] + sys.argv[1:])
    except Exception:
        logging.getLogger("kiwimenu").critical(
            "Fatal error during initialization", exc_info=True
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
