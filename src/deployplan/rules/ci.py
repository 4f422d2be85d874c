"""Literal command prefixes used to classify CI run lines."""

INSTALL_PREFIXES: tuple[str, ...] = (
    "npm ci",
    "npm install",
    "yarn install",
    "yarn --frozen-lockfile",
    "pnpm install",
    "bun install",
    "pip install",
    "poetry install",
    "composer install",
    "bundle install",
    "cargo build",
    "go mod download",
)

BUILD_PREFIXES: tuple[str, ...] = (
    "npm run build",
    "yarn build",
    "pnpm build",
    "pnpm run build",
    "bun run build",
    "next build",
    "nuxt build",
    "vite build",
    "tsc",
    "go build",
    "cargo build --release",
    "mix compile",
    "mvn package",
    "gradle build",
)

TEST_PREFIXES: tuple[str, ...] = (
    "npm test",
    "npm run test",
    "yarn test",
    "pnpm test",
    "jest",
    "vitest",
    "pytest",
    "python -m pytest",
    "go test",
    "cargo test",
    "phpunit",
    "pest",
    "rspec",
    "bundle exec rspec",
    "mix test",
)

START_PREFIXES: tuple[str, ...] = (
    "npm start",
    "npm run start",
    "yarn start",
    "node ",
    "python ",
    "uvicorn",
    "gunicorn",
    "./main",
    "go run",
)

# Lockfile -> package manager, checked in order; npm is the fallback
LOCKFILES: tuple[tuple[str, str], ...] = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
)
