"""Self-update workflow.

The installed executable is replaced atomically: the new copy is written to
a temporary file beside it, made executable, then moved over it. Nothing
touches the installed file until the new copy is complete.
"""

import http.client
import os
import shutil
import tempfile
import urllib.error
import urllib.request
from pathlib import Path

from devflow import __version__
from devflow.errors import ConfigError, DevflowError, ExitCode
from devflow.models import UpdateConfig
from devflow.utils.logger import get_logger

logger = get_logger(__name__)

EXECUTABLE_MODE = 0o755


class DownloadError(DevflowError):
    """Release download failed."""

    exit_code = ExitCode.DOWNLOAD_FAILED


class CopyError(DevflowError):
    """Copying or installing the new executable failed."""

    exit_code = ExitCode.COPY_FAILED


def _staging_file(install_path: Path) -> Path:
    try:
        install_path.parent.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=f".{install_path.name}-", dir=install_path.parent)
    except OSError as e:
        raise CopyError(f"Cannot write to {install_path.parent}: {e}")
    os.close(fd)
    return Path(name)


def _install(staged: Path, install_path: Path) -> None:
    try:
        staged.chmod(EXECUTABLE_MODE)
        os.replace(staged, install_path)
    except OSError as e:
        staged.unlink(missing_ok=True)
        raise CopyError(f"Could not install {install_path}: {e}")


def download(url: str, destination: Path, timeout: float) -> None:
    """Download ``url`` into ``destination``.

    A body shorter or longer than the announced ``Content-Length`` is a
    failed download.

    Raises:
        DownloadError: On any network, HTTP or write error
    """
    request = urllib.request.Request(url, headers={"User-Agent": f"devflow/{__version__}"})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            expected = response.headers.get("Content-Length")
            with open(destination, "wb") as f:
                shutil.copyfileobj(response, f)
                written = f.tell()
            if expected is not None and written != int(expected):
                raise DownloadError(
                    f"Download of {url} incomplete: got {written} of {expected} bytes"
                )
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
        raise DownloadError(f"Download of {url} failed: {e}")


def update_workflow(config: UpdateConfig, local: bool = False) -> Path:
    """Replace the installed executable with a downloaded or local copy.

    Args:
        config: Self-update settings
        local: Copy from ``config.local_source`` instead of downloading

    Returns:
        Path of the updated executable

    Raises:
        ConfigError: If the source is not configured
        DownloadError: If the download fails (installed file untouched)
        CopyError: If the local copy or the install step fails
    """
    install_path = config.install_path_obj

    if local:
        if not config.local_source:
            raise ConfigError("update.local_source is not configured")
        source = Path(config.local_source).expanduser()
        if not source.is_file():
            raise CopyError(f"Local source {source} does not exist")

        staged = _staging_file(install_path)
        logger.info(f"Copying {source} to {install_path}")
        try:
            shutil.copyfile(source, staged)
        except OSError as e:
            staged.unlink(missing_ok=True)
            raise CopyError(f"Could not copy {source}: {e}")
    else:
        if not config.url:
            raise ConfigError("update.url is not configured")

        staged = _staging_file(install_path)
        logger.info(f"Downloading {config.url}")
        try:
            download(config.url, staged, config.timeout)
        except DownloadError:
            staged.unlink(missing_ok=True)
            raise

    _install(staged, install_path)
    logger.info(f"Updated {install_path}")
    return install_path
