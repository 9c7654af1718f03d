"""Fetching PDFs and extracting their text page by page."""

import logging
import re
from pathlib import Path

import requests
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .config import DEFAULT_START_PAGE, DOWNLOAD_TIMEOUT
from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")


def preprocess(text: str) -> str:
    """Collapse newlines and runs of whitespace into single spaces."""
    text = text.replace("\n", " ")
    return WHITESPACE_RE.sub(" ", text)


def download_pdf(
    url: str,
    output_path: Path | str,
    timeout: float = DOWNLOAD_TIMEOUT,
) -> Path:
    """Download a PDF to disk.

    Args:
        url: Location of the PDF.
        output_path: Where to write it.
        timeout: Seconds to wait for the server.

    Returns:
        Path the PDF was written to.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    # The target is only replaced once the whole body has arrived
    part_path = output_path.with_name(output_path.name + ".part")

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(part_path, "wb") as f:
                for block in response.iter_content(chunk_size=64 * 1024):
                    f.write(block)
        part_path.replace(output_path)
    except (requests.RequestException, ConnectionError) as e:
        logger.error(f"Error downloading {url}: {e}")
        raise UpstreamError(f"Failed to download {url}: {e}") from e
    finally:
        part_path.unlink(missing_ok=True)

    logger.info(f"Downloaded {url} to {output_path}")
    return output_path


def pdf_to_text(
    path: Path | str,
    start_page: int = DEFAULT_START_PAGE,
    end_page: int | None = None,
) -> list[str]:
    """Extract preprocessed text for a range of pages.

    Args:
        path: PDF file.
        start_page: First page to extract (1-based, inclusive).
        end_page: Last page to extract (inclusive). Defaults to the last page.

    Returns:
        One string per page, in page order.
    """
    try:
        reader = PdfReader(str(path))
        num_pages = len(reader.pages)
    except PdfReadError as e:
        logger.error(f"Error reading {path}: {e}")
        raise UpstreamError(f"{path} is not a readable PDF: {e}") from e

    if end_page is None:
        end_page = num_pages
    if start_page < 1 or end_page > num_pages or start_page > end_page:
        raise ConfigurationError(
            f"Page range {start_page}-{end_page} is invalid for a {num_pages}-page document"
        )

    text_list = []
    for i in range(start_page - 1, end_page):
        try:
            text = reader.pages[i].extract_text() or ""
        except PdfReadError as e:
            logger.error(f"Error extracting page {i + 1} of {path}: {e}")
            raise UpstreamError(f"Could not extract page {i + 1} of {path}: {e}") from e
        text_list.append(preprocess(text))

    logger.info(f"Extracted pages {start_page}-{end_page} from {path}")
    return text_list
