"""
gst_config -- single public entrypoint for tax regime configuration.

Responsibility:
    Provides the ONLY way to obtain a tax regime at runtime through
    ``get_active_regime()``. YAML loading is internal tooling and never
    exposed to callers.

Architecture position:
    Configuration -- YAML-driven regime definitions, validated before use.
    Sits above ``gst_kernel`` and ``gst_engines`` and below
    ``gst_services``. The kernel and the engines MUST NEVER import from
    ``gst_config``.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set for the requested regime.
    - ``ValueError`` -- validation failures.

Audit relevance:
    Every successful ``get_active_regime()`` call emits a
    ``GST_CONFIG_TRACE`` log entry with the regime id, version and
    checksum. Invoices store the checksum of the regime that computed them.
"""

from __future__ import annotations

from pathlib import Path

from gst_config.loader import load_regime
from gst_config.regime import TaxRegime, compile_regime
from gst_config.validator import validate_regime
from gst_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_regime(
    regime_id: str = "india_gst",
    config_dir: Path | None = None,
) -> TaxRegime:
    """The ONLY public configuration entrypoint.

    Args:
        regime_id: Name of the regime directory under the sets directory.
        config_dir: Override path to the configuration sets directory.
            Defaults to gst_config/sets/.

    Returns:
        TaxRegime -- the validated runtime artifact.

    Raises:
        FileNotFoundError: If no such regime exists.
        ValueError: If the regime fails validation.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    regime_dir = sets_dir / regime_id
    if not (regime_dir / "root.yaml").is_file():
        raise FileNotFoundError(
            f"No configuration set found for regime '{regime_id}' in {sets_dir}"
        )

    config = load_regime(regime_dir)
    if config.regime_id != regime_id:
        raise ValueError(
            f"Regime directory '{regime_id}' declares regime_id '{config.regime_id}'"
        )

    validation = validate_regime(config)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={
            "regime_id": regime_id,
            "warning": warning,
        })
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    regime = compile_regime(config)

    _logger.info(
        "GST_CONFIG_TRACE",
        extra={
            "trace_type": "GST_CONFIG_TRACE",
            "regime_id": regime.regime_id,
            "regime_version": regime.version,
            "checksum": regime.checksum,
            "jurisdiction": regime.jurisdiction,
            "currency": regime.currency,
            "rate_count": len(regime.rate_table),
        },
    )
    return regime


__all__ = ["TaxRegime", "get_active_regime"]
