# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import os
import shutil
import signal
import subprocess
import sys
import threading
from pathlib import Path
from types import FrameType
from typing import NoReturn

from fdq_lib.core.descriptors import DescriptorTable
from fdq_lib.core.error import FDQError, FDQRunError
from fdq_lib.core.logger import get_logger
from fdq_lib.explain.explainer import Explainer, Explanation
from fdq_lib.properties.redirection import Redirection, RedirectOp

logger = get_logger(__name__)


class Runner:
    """
    Launches a command in a child process with the given redirections applied.

    The Runner class is responsible for:
      - Checking that the redirections can be applied
      - Applying the redirections inside the child, from left to right,
        before the command is executed
      - Forwarding SIGTERM to the child
      - Reporting the exit code of the command
    """

    def __init__(
        self,
        command: list[str],
        redirections: list[Redirection],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ):
        """
        Initialize a new Runner instance.

        Args:
            command (list[str]): The command to execute and its arguments.
            redirections (list[Redirection]): Redirections to apply in the child.
            cwd (Path | None): Working directory of the child. Relative paths
                in redirections are resolved against it. Defaults to the current directory.
            env (dict[str, str] | None): Environment of the child. Defaults to the
                environment of the current process.

        Raises:
            FDQError: If no command is given.
        """
        if not command:
            raise FDQError("No command to run.")

        self._command = command
        self._redirections = redirections
        self._cwd = cwd
        self._env = env

        self._process: subprocess.Popen | None = None

    def explain(self) -> Explanation:
        """
        Evaluate the redirections without applying them.

        Descriptors inherited from the current process are taken into account.

        Returns:
            Explanation: Step-by-step evaluation of the redirections.

        Raises:
            FDQError: If a redirection duplicates a descriptor that is not open.
        """
        return Explainer(self._redirections, self._inheritedStreams()).explain()

    def run(self) -> int:
        """
        Execute the command and wait for it to finish.

        Returns:
            int: Exit code of the command. If the command was terminated
                by a signal, the exit code is 128 + signal number.

        Raises:
            FDQError: If the redirections cannot be applied.
            FDQRunError: If the command cannot be executed.
        """
        explanation = self.explain()
        for step in explanation.steps:
            logger.debug(f"{step.redirection}: {step.table.get(step.redirection.fd)}.")
        self._validateTargets()
        self._validateCommand()

        logger.debug(f"Executing command {self._command}.")
        previous_handler = self._installSigtermHandler()
        try:
            self._process = subprocess.Popen(
                self._command,
                cwd=self._cwd,
                env=self._env,
                close_fds=False,
                preexec_fn=self._applyRedirections,
            )
            returncode = self._process.wait()
        except subprocess.SubprocessError as e:
            raise FDQRunError(
                f"Could not apply redirections '{' '.join(map(str, self._redirections))}': {e}"
            ) from e
        except OSError as e:
            raise FDQRunError(
                f"Could not execute '{self._command[0]}': {e.strerror}."
            ) from e
        finally:
            self._process = None
            if previous_handler is not None:
                signal.signal(signal.SIGTERM, previous_handler)

        if returncode < 0:
            logger.debug(f"Command terminated by signal {-returncode}.")
            return 128 - returncode

        logger.debug(f"Command finished with exit code {returncode}.")
        return returncode

    def _applyRedirections(self) -> None:
        """
        Apply the redirections. Runs in the child between fork and exec.
        """
        DescriptorTable().applyAll(self._redirections)

    def _validateTargets(self) -> None:
        """
        Check that files to read exist and that directories of files to create exist.

        Raises:
            FDQError: If a redirection target cannot be used.
        """
        base = self._cwd or Path.cwd()
        for redirection in self._redirections:
            if not redirection.op.opensFile():
                continue

            assert isinstance(redirection.target, Path)
            path = base / redirection.target
            if redirection.op == RedirectOp.READ and not path.exists():
                raise FDQError(
                    f"Could not open '{redirection.target}': No such file or directory."
                )
            if not path.parent.is_dir():
                raise FDQError(
                    f"Could not open '{redirection.target}': Directory '{path.parent}' does not exist."
                )

    def _validateCommand(self) -> None:
        """
        Check that the command exists and is executable.

        The child reports a failed exec through a pipe that a redirection
        may replace, so the check is done before starting the child.

        Raises:
            FDQRunError: If the command cannot be executed.
        """
        program = self._command[0]
        if os.sep in program:
            path = (self._cwd or Path.cwd()) / program
            found = path.is_file() and os.access(path, os.X_OK)
        else:
            env = os.environ if self._env is None else self._env
            found = shutil.which(program, path=env.get("PATH", os.defpath)) is not None

        if not found:
            raise FDQRunError(
                f"Could not execute '{program}': No such file or directory."
            )

    def _inheritedStreams(self) -> dict[int, str]:
        """
        Return the standard streams and all other duplicated descriptors open in this process.
        """
        streams = {0: "stdin", 1: "stdout", 2: "stderr"}
        for redirection in self._redirections:
            fd = redirection.target
            if not redirection.op.duplicates() or fd in streams:
                continue

            assert isinstance(fd, int)
            try:
                os.fstat(fd)
            except OSError:
                continue
            streams[fd] = f"descriptor {fd}"

        return streams

    def _installSigtermHandler(self):
        """
        Forward SIGTERM to the child. Only possible in the main thread.

        Returns:
            The previous handler or None if no handler was installed.
        """
        if threading.current_thread() is not threading.main_thread():
            return None

        return signal.signal(signal.SIGTERM, self._handleSigterm)

    def _handleSigterm(self, _signum: int, _frame: FrameType | None) -> NoReturn:
        """
        Signal handler for SIGTERM.

        Terminates the child, logs termination, and exits.
        """
        logger.info("Received SIGTERM, terminating the command.")
        if self._process and self._process.poll() is None:
            self._process.terminate()
            self._process.wait()
        logger.error("Execution was terminated by SIGTERM.")
        sys.exit(143)
