"""Names, ports and keys shared by the manifest builders."""

APPLICATION_NAME = "keycloak"
KEYCLOAK_COMPONENT = "keycloak"

KEYCLOAK_STATEFULSET_NAME = "keycloak"
KEYCLOAK_SERVICE_NAME = APPLICATION_NAME
KEYCLOAK_DISCOVERY_SERVICE_NAME = "keycloak-discovery"
KEYCLOAK_PROBES_NAME = "keycloak-probes"
KEYCLOAK_MONITORING_NAME = "keycloak"
SERVING_CERT_SECRET_NAME = "sso-x509-https-secret"
EXTENSIONS_VOLUME_NAME = "keycloak-extensions"

KEYCLOAK_HTTPS_PORT = 8443
KEYCLOAK_HTTP_PORT = 8080
KEYCLOAK_MANAGEMENT_PORT = 9990
KEYCLOAK_DISCOVERY_PORT = 8080

DEFAULT_KEYCLOAK_IMAGE = "quay.io/keycloak/keycloak:9.0.2"
DEFAULT_KEYCLOAK_INIT_CONTAINER = "quay.io/keycloak/keycloak-init-container:master"
EXTENSIONS_ENV_VAR = "KEYCLOAK_EXTENSIONS"
EXTENSIONS_PATH = "/opt/jboss/keycloak/providers"
EXTENSIONS_INIT_CONTAINER_PATH = "/opt/extensions"

INGRESS_DEFAULT_HOST = "keycloak.local"

# Admin credential secret
ADMIN_SECRET_PREFIX = "credential-"
ADMIN_USERNAME_KEY = "ADMIN_USERNAME"
ADMIN_PASSWORD_KEY = "ADMIN_PASSWORD"
DEFAULT_ADMIN_USERNAME = "admin"

# Database secret
DATABASE_SECRET_NAME = "keycloak-db-secret"
DATABASE_USERNAME_KEY = "POSTGRES_USERNAME"
DATABASE_PASSWORD_KEY = "POSTGRES_PASSWORD"
DATABASE_NAME_KEY = "POSTGRES_DATABASE"
DATABASE_EXTERNAL_ADDRESS_KEY = "POSTGRES_EXTERNAL_ADDRESS"
DATABASE_EXTERNAL_PORT_KEY = "POSTGRES_EXTERNAL_PORT"
POSTGRESQL_SERVICE_NAME = "keycloak-postgresql"
POSTGRESQL_DATABASE = "root"
POSTGRESQL_DEFAULT_PORT = 5432

# Realm user credential secrets
REALM_USER_USERNAME_KEY = "username"
REALM_USER_PASSWORD_KEY = "password"

# Probes
LIVENESS_PROBE_SCRIPT = "liveness_probe.sh"
READINESS_PROBE_SCRIPT = "readiness_probe.sh"
LIVENESS_PROBE_INITIAL_DELAY = 30
READINESS_PROBE_INITIAL_DELAY = 40
# two 10s curl calls plus slack
PROBE_TIMEOUT_SECONDS = 22
PROBE_PERIOD_SECONDS = 30
PROBE_FAILURE_THRESHOLD = 10
