import shlex
import subprocess
from typing import Any, List, Union


class CommandRunner:
    def __init__(self, logger: Any):
        self.logger = logger

    def run(self, cmd: Union[str, List[str]]) -> bool:
        """
        Starts a command detached from the panel without waiting for it.
        Returns False when it could not be started.
        """
        argv = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        if not argv:
            self.logger.warning("Refusing to run an empty command.")
            return False
        try:
            subprocess.Popen(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
            self.logger.info(f"Started command: {' '.join(argv)}")
            return True
        except OSError as e:
            self.logger.error(f"Error running command {argv}: {e}")
            return False
