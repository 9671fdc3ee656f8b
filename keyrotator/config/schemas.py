"""Configuration schema for keyrotator."""

LOCATION_TYPE_NAMES = [
    "atlas",
    "circleci",
    "circleci_context",
    "datadog",
    "gcs",
    "git",
    "github",
    "gocd",
    "k8s",
    "secretsmanager",
    "ssm",
]

CLOUD_PROVIDER_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "enum": ["aws", "gcp"]},
        "project": {"type": "string"},
        "self": {"type": "string", "description": "Account this process authenticates as"},
    },
    "required": ["name"],
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "rotation_mode": {"type": "boolean"},
        "include_aws_user_keys": {"type": "boolean"},
        "include_inactive_keys": {"type": "boolean"},
        "enable_key_age_logging": {"type": "boolean"},
        "default_rotation_age_threshold_mins": {"type": "integer", "minimum": 0},
        "cloud_providers": {
            "type": "array",
            "items": CLOUD_PROVIDER_SCHEMA,
        },
        "account_filter": {
            "type": "object",
            "properties": {
                "mode": {"type": "string"},
                "accounts": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "provider": CLOUD_PROVIDER_SCHEMA,
                            "accounts": {"type": "array", "items": {"type": "string"}},
                        },
                        "required": ["provider"],
                        "additionalProperties": False,
                    },
                },
            },
            "additionalProperties": False,
        },
        "account_key_locations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "service_account_name": {"type": "string", "minLength": 1},
                    "rotation_age_threshold_mins": {"type": "integer", "minimum": 0},
                    "locations": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "type": {"type": "string", "enum": LOCATION_TYPE_NAMES},
                            },
                            "required": ["type"],
                        },
                    },
                },
                "required": ["service_account_name"],
                "additionalProperties": False,
            },
        },
        "credentials": {
            "type": "object",
            "properties": {
                "circleci_api_token": {"type": "string"},
                "github_api_token": {"type": "string"},
                "git_account": {
                    "type": "object",
                    "properties": {
                        "git_access_token": {"type": "string"},
                        "git_name": {"type": "string"},
                        "git_email": {"type": "string"},
                    },
                    "additionalProperties": False,
                },
                "akr_pass": {"type": "string"},
                "akr_path": {"type": "string"},
                "kms_key": {"type": "string"},
                "gocd_server": {
                    "type": "object",
                    "properties": {
                        "server": {"type": "string"},
                        "username": {"type": "string"},
                        "password": {"type": "string"},
                        "skip_ssl_check": {"type": "boolean"},
                    },
                    "additionalProperties": False,
                },
                "atlas_keys": {
                    "type": "object",
                    "properties": {
                        "public_key": {"type": "string"},
                        "private_key": {"type": "string"},
                    },
                    "additionalProperties": False,
                },
                "datadog": {
                    "type": "object",
                    "properties": {
                        "api_key": {"type": "string"},
                        "app_key": {"type": "string"},
                    },
                    "additionalProperties": False,
                },
            },
            "additionalProperties": False,
        },
    },
    "required": ["cloud_providers"],
}
