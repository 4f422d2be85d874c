"""Package-name tables for databases, external services and SQLite."""

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

from deployplan.models.analysis import EnvCategory


class PackageManager(StrEnum):
    """Ecosystems in the order their manifests are consulted."""

    NPM = "npm"
    PIP = "pip"
    COMPOSER = "composer"
    GEM = "gem"
    GO = "go"
    CARGO = "cargo"


@dataclass(frozen=True)
class DatabaseRule:
    type: str
    env_var_name: str
    packages: MappingProxyType[PackageManager, tuple[str, ...]]


@dataclass(frozen=True)
class ServiceRule:
    type: str
    description: str
    required_env_vars: tuple[str, ...]
    packages: MappingProxyType[PackageManager, tuple[str, ...]]


@dataclass(frozen=True)
class SqliteConvention:
    """Where a framework expects its SQLite file to live."""

    mount_path: str
    env_var_name: str
    env_var_value: str


def _packages(**by_manager: tuple[str, ...]) -> MappingProxyType[PackageManager, tuple[str, ...]]:
    return MappingProxyType({PackageManager(k): v for k, v in by_manager.items()})


DATABASE_RULES: tuple[DatabaseRule, ...] = (
    DatabaseRule(
        "postgresql",
        "DATABASE_URL",
        _packages(
            npm=("pg", "postgres", "@prisma/client", "sequelize", "typeorm", "drizzle-orm", "knex"),
            pip=("psycopg2", "psycopg2-binary", "asyncpg", "databases[postgresql]"),
            composer=("doctrine/dbal", "illuminate/database"),
            gem=("pg", "activerecord-postgresql-adapter"),
            go=("github.com/lib/pq", "github.com/jackc/pgx", "gorm.io/driver/postgres"),
            cargo=("tokio-postgres", "diesel"),
        ),
    ),
    DatabaseRule(
        "mysql",
        "DATABASE_URL",
        _packages(
            npm=("mysql", "mysql2"),
            pip=("mysqlclient", "pymysql", "aiomysql"),
            gem=("mysql2",),
            go=("github.com/go-sql-driver/mysql", "gorm.io/driver/mysql"),
            cargo=("mysql",),
        ),
    ),
    DatabaseRule(
        "mongodb",
        "MONGODB_URL",
        _packages(
            npm=("mongodb", "mongoose", "@typegoose/typegoose"),
            pip=("pymongo", "motor", "mongoengine"),
            composer=("mongodb/mongodb", "jenssegers/mongodb"),
            gem=("mongoid", "mongo"),
            go=("go.mongodb.org/mongo-driver",),
            cargo=("mongodb",),
        ),
    ),
    DatabaseRule(
        "redis",
        "REDIS_URL",
        _packages(
            npm=("redis", "ioredis", "@upstash/redis", "bullmq", "bull"),
            pip=("redis", "aioredis"),
            composer=("predis/predis",),
            gem=("redis", "sidekiq", "resque"),
            go=("github.com/go-redis/redis", "github.com/redis/go-redis"),
            cargo=("redis", "deadpool-redis"),
        ),
    ),
    DatabaseRule(
        "clickhouse",
        "CLICKHOUSE_URL",
        _packages(
            npm=("@clickhouse/client", "clickhouse"),
            pip=("clickhouse-driver", "clickhouse-connect", "asynch"),
            go=("github.com/ClickHouse/clickhouse-go",),
        ),
    ),
)

SERVICE_RULES: tuple[ServiceRule, ...] = (
    ServiceRule(
        "s3",
        "S3-compatible object storage (AWS S3, MinIO, etc.)",
        ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "S3_BUCKET", "S3_ENDPOINT"),
        _packages(
            npm=("@aws-sdk/client-s3", "aws-sdk", "minio"),
            pip=("boto3", "minio"),
            go=("github.com/aws/aws-sdk-go", "github.com/minio/minio-go"),
        ),
    ),
    ServiceRule(
        "elasticsearch",
        "Elasticsearch for full-text search",
        ("ELASTICSEARCH_URL", "ELASTIC_URL"),
        _packages(
            npm=("@elastic/elasticsearch",),
            pip=("elasticsearch", "elasticsearch-dsl"),
            go=("github.com/elastic/go-elasticsearch",),
        ),
    ),
    ServiceRule(
        "rabbitmq",
        "RabbitMQ message broker",
        ("RABBITMQ_URL", "AMQP_URL"),
        _packages(
            npm=("amqplib", "amqp-connection-manager"),
            pip=("pika", "aio-pika"),
            go=("github.com/streadway/amqp", "github.com/rabbitmq/amqp091-go"),
        ),
    ),
    ServiceRule(
        "kafka",
        "Apache Kafka for event streaming",
        ("KAFKA_BROKERS", "KAFKA_URL"),
        _packages(
            npm=("kafkajs", "node-rdkafka"),
            pip=("kafka-python", "aiokafka", "confluent-kafka"),
            go=("github.com/segmentio/kafka-go", "github.com/confluentinc/confluent-kafka-go"),
        ),
    ),
    ServiceRule(
        "email",
        "Email service (SMTP, SendGrid, Resend)",
        ("SMTP_HOST", "SMTP_PORT", "SENDGRID_API_KEY", "RESEND_API_KEY"),
        _packages(
            npm=("nodemailer", "@sendgrid/mail", "resend"),
            pip=("sendgrid", "resend"),
        ),
    ),
)

# File-based databases: these get a persistent volume, never a database service
SQLITE_PACKAGES = _packages(
    npm=("better-sqlite3", "sql.js", "sqlite3"),
    pip=("aiosqlite", "databases[sqlite]"),
    composer=("ext-sqlite3",),
    gem=("sqlite3",),
    go=("github.com/mattn/go-sqlite3", "modernc.org/sqlite", "gorm.io/driver/sqlite"),
    cargo=("rusqlite", "diesel"),
)

SQLITE_VOLUME_NAME = "sqlite-data"

SQLITE_CONVENTIONS: MappingProxyType[str, SqliteConvention] = MappingProxyType({
    "laravel": SqliteConvention(
        "/var/www/html/database", "DB_DATABASE", "/var/www/html/database/database.sqlite"
    ),
    "django": SqliteConvention("/app/data", "DATABASE_PATH", "/app/data/db.sqlite3"),
})

SQLITE_DEFAULT = SqliteConvention("/data", "DATABASE_PATH", "/data/db.sqlite")

PRISMA_SCHEMAS: tuple[str, ...] = ("prisma/schema.prisma", "schema.prisma")

# First category whose substring appears in the upper-cased key wins
ENV_CATEGORIES: tuple[tuple[EnvCategory, tuple[str, ...]], ...] = (
    (EnvCategory.DATABASE, ("DATABASE", "DB_", "POSTGRES", "MYSQL", "MONGODB", "MONGO_")),
    (EnvCategory.CACHE, ("REDIS", "CACHE_", "MEMCACHE")),
    (EnvCategory.STORAGE, ("AWS", "S3_", "MINIO", "STORAGE_")),
    (EnvCategory.EMAIL, ("SMTP", "MAIL", "SENDGRID", "RESEND")),
    (EnvCategory.SECRETS, ("SECRET", "_KEY", "_TOKEN", "PASSWORD", "PRIVATE")),
    (EnvCategory.NETWORK, ("PORT", "HOST", "_URL", "DOMAIN")),
)

ENV_EXAMPLE_FILES: tuple[str, ...] = (".env.example", ".env.sample", ".env.template", "env.example")

SOURCE_IGNORED_ENV = frozenset(
    {"PATH", "HOME", "USER", "SHELL", "PWD", "TERM", "LANG", "LC_ALL", "NODE_ENV", "PYTHONPATH"}
)

DOCKERFILE_IGNORED_ENV = frozenset({
    "PATH",
    "HOME",
    "PYTHONUNBUFFERED",
    "PYTHONDONTWRITEBYTECODE",
    "DEBIAN_FRONTEND",
    "TZ",
    "LANG",
    "LC_ALL",
    "NODE_ENV",
})


def categorize_env_var(key: str) -> EnvCategory:
    upper = key.upper()
    for category, patterns in ENV_CATEGORIES:
        if any(pattern in upper for pattern in patterns):
            return category
    return EnvCategory.GENERAL
