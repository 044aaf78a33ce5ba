"""
Configuration validation utilities.

This module turns raw TOML data into validated daemon settings and catalog
entries.
"""

import logging
from typing import Any, Dict, List

from ..models.config import DaemonConfig, MatchRuleConfig, PredefinedExporterConfig
from ..validation import (
    ValidationError,
    validate_docker_name,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string_list,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
MATCH_FIELDS = ["name", "image", "label"]
MATCH_TYPES = ["exact", "contains", "regex", "in_list"]


def _validate_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean", field_name=field_name, value=value)
    return value


def validate_daemon_config(daemon_data: Dict[str, Any]) -> DaemonConfig:
    """
    Validate and create a DaemonConfig from raw configuration data.

    Args:
        daemon_data: Raw [daemon] table from TOML

    Returns:
        Validated DaemonConfig instance

    Raises:
        ValidationError: If validation fails
    """
    defaults = DaemonConfig()
    general_settings = daemon_data.get("general", {})
    network_settings = daemon_data.get("network", {})
    events_settings = daemon_data.get("events", {})
    exporters_settings = daemon_data.get("exporters", {})
    reconcile_settings = daemon_data.get("reconcile", {})

    try:
        log_level = validate_enum_choice(
            general_settings.get("log_level", defaults.log_level),
            choices=LOG_LEVELS,
            field_name="daemon.general.log_level",
            case_sensitive=False,
        )

        monitoring_network = validate_docker_name(
            network_settings.get("name", defaults.monitoring_network),
            field_name="daemon.network.name",
        )

        retry_attempts = validate_positive_integer(
            events_settings.get("retry_attempts", defaults.retry_attempts),
            min_value=1,
            max_value=100,
            field_name="daemon.events.retry_attempts",
        )

        retry_delay = validate_positive_float(
            events_settings.get("retry_delay", defaults.retry_delay),
            min_value=0.0,
            max_value=600.0,
            field_name="daemon.events.retry_delay",
        )

        max_workers = validate_positive_integer(
            events_settings.get("max_workers", defaults.max_workers),
            min_value=1,
            max_value=256,
            field_name="daemon.events.max_workers",
        )

        thread_name_prefix = events_settings.get("thread_name_prefix", defaults.thread_name_prefix)
        if not isinstance(thread_name_prefix, str) or not thread_name_prefix.strip():
            raise ValidationError(
                "daemon.events.thread_name_prefix must be a non-empty string"
            )

        exporter_user = str(exporters_settings.get("user", defaults.exporter_user))

        restart_max_retries = validate_positive_integer(
            exporters_settings.get("restart_max_retries", defaults.restart_max_retries),
            min_value=0,
            max_value=1000,
            field_name="daemon.exporters.restart_max_retries",
        )

        stop_timeout = validate_positive_integer(
            exporters_settings.get("stop_timeout", defaults.stop_timeout),
            min_value=0,
            max_value=3600,
            field_name="daemon.exporters.stop_timeout",
        )

        reconcile_on_startup = _validate_bool(
            reconcile_settings.get("on_startup", defaults.reconcile_on_startup),
            "daemon.reconcile.on_startup",
        )

        reconcile_interval = validate_positive_float(
            reconcile_settings.get("interval_seconds", defaults.reconcile_interval),
            min_value=0.0,
            max_value=86400.0,
            field_name="daemon.reconcile.interval_seconds",
        )

        return DaemonConfig(
            log_level=log_level,
            monitoring_network=monitoring_network,
            retry_attempts=retry_attempts,
            retry_delay=retry_delay,
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
            exporter_user=exporter_user,
            restart_max_retries=restart_max_retries,
            stop_timeout=stop_timeout,
            reconcile_on_startup=reconcile_on_startup,
            reconcile_interval=reconcile_interval,
        )

    except ValidationError as e:
        logger.error(f"Daemon configuration validation failed: {e}")
        raise


def validate_match_rule(rule_data: Dict[str, Any], field_name: str) -> MatchRuleConfig:
    """
    Validate one [[exporters.match]] table.

    Raises:
        ValidationError: If the rule is incomplete or its patterns don't fit
            its match_type
    """
    match_field = validate_enum_choice(
        rule_data.get("match_field", ""),
        choices=MATCH_FIELDS,
        field_name=f"{field_name}.match_field",
    )
    match_type = validate_enum_choice(
        rule_data.get("match_type", ""),
        choices=MATCH_TYPES,
        field_name=f"{field_name}.match_type",
    )

    label = rule_data.get("label")
    if match_field == "label" and (not isinstance(label, str) or not label):
        raise ValidationError(
            f"{field_name}.label is required when match_field is 'label'",
            field_name=f"{field_name}.label",
            value=label,
        )

    patterns = rule_data.get("patterns", "")
    if match_type == "in_list":
        if isinstance(patterns, str):
            patterns = [patterns]
        patterns = validate_string_list(patterns, field_name=f"{field_name}.patterns")
        if not patterns:
            raise ValidationError(f"{field_name}.patterns cannot be empty", field_name=f"{field_name}.patterns")
    else:
        if not isinstance(patterns, str) or not patterns:
            raise ValidationError(
                f"{field_name}.patterns must be a non-empty string for match_type '{match_type}'",
                field_name=f"{field_name}.patterns",
                value=patterns,
            )
        if match_type == "regex":
            validate_regex_pattern(patterns, field_name=f"{field_name}.patterns")

    return MatchRuleConfig(
        match_field=match_field,
        match_type=match_type,
        patterns=patterns,
        label=label,
    )


def validate_exporters_config(
    exporters_data: List[Dict[str, Any]],
) -> List[PredefinedExporterConfig]:
    """
    Validate and create PredefinedExporterConfig instances from raw catalog data.

    Args:
        exporters_data: List of raw [[exporters]] tables from TOML

    Returns:
        List of validated PredefinedExporterConfig instances, in file order

    Raises:
        ValidationError: If validation fails or an exporter type is declared twice
    """
    exporters_config = []
    seen_types = set()

    for i, exporter_data in enumerate(exporters_data):
        prefix = f"exporters[{i}]"
        try:
            exporter_type = validate_docker_name(
                exporter_data.get("type", ""), field_name=f"{prefix}.type"
            )
            if exporter_type in seen_types:
                raise ValidationError(
                    f"{prefix}.type '{exporter_type}' is already defined",
                    field_name=f"{prefix}.type",
                    value=exporter_type,
                )
            seen_types.add(exporter_type)

            image = exporter_data.get("image", "")
            if not isinstance(image, str) or not image.strip():
                raise ValidationError(f"{prefix}.image cannot be empty", field_name=f"{prefix}.image")

            cmd = validate_string_list(exporter_data.get("cmd", []), field_name=f"{prefix}.cmd")
            env = validate_string_list(exporter_data.get("env", []), field_name=f"{prefix}.env")
            for j, entry in enumerate(env):
                if "=" not in entry:
                    raise ValidationError(
                        f"{prefix}.env[{j}] must be a KEY=VALUE string, got {entry!r}",
                        field_name=f"{prefix}.env[{j}]",
                        value=entry,
                    )

            rules = [
                validate_match_rule(rule_data, f"{prefix}.match[{j}]")
                for j, rule_data in enumerate(exporter_data.get("match", []))
            ]

            exporters_config.append(
                PredefinedExporterConfig(
                    type=exporter_type,
                    image=image.strip(),
                    cmd=cmd,
                    env=env,
                    port=str(exporter_data.get("port", "")),
                    match=rules,
                    comment=exporter_data.get("comment", ""),
                )
            )

        except ValidationError as e:
            logger.error(f"Exporter configuration validation failed for {prefix}: {e}")
            raise

    return exporters_config
