"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use MDINJECT_ prefix (e.g., MDINJECT_BLOCK_PREFIX=SNIPPET).

Settings can also be loaded from a .env file in the project root. Command
line flags given to md-inject take precedence over both.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Run-level configuration via environment variables.

    Environment variables use MDINJECT_ prefix.

    Examples:
        MDINJECT_BLOCK_PREFIX=SNIPPET
        MDINJECT_GLOB_PATTERN=docs/**/*.mdx
        MDINJECT_USE_SYSTEM_ENVIRONMENT=false
        MDINJECT_COMMAND_TIMEOUT=30
    """

    model_config = SettingsConfigDict(
        env_prefix="MDINJECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Marker configuration
    block_prefix: str = Field(
        default="CODEBLOCK",
        description="Keyword prefix of block markers (CODEBLOCK -> CODEBLOCK_START / CODEBLOCK_END)",
    )

    format_suppression: str = Field(
        default="prettier-ignore",
        description="Keyword of the comment that keeps document formatters away from injected blocks",
    )

    # Discovery configuration
    glob_pattern: str = Field(
        default="**/*.md",
        description="Glob pattern (relative to the run root) selecting documents to process",
    )

    follow_symbolic_links: bool = Field(
        default=True,
        description="Descend into symbolically linked directories and files during discovery",
    )

    use_gitignore: bool = Field(
        default=True,
        description="Skip documents that git reports as ignored",
    )

    # Execution configuration
    use_system_environment: bool = Field(
        default=True,
        description="Forward the process environment to block commands",
    )

    force_color: str = Field(
        default="0",
        description="Default FORCE_COLOR value handed to block commands",
    )

    command_timeout: Optional[float] = Field(
        default=None,
        description="Seconds before a block command is abandoned (None waits indefinitely)",
    )

    jobs: int = Field(
        default=1,
        ge=1,
        description="Number of documents processed in parallel",
    )

    # Run control
    skip_on_pull_request: bool = Field(
        default=True,
        description="Skip the whole run when executing inside a CI pull request build",
    )

    quiet: bool = Field(
        default=False,
        description="Suppress informational output (errors are always reported)",
    )


# Singleton instance - import this in your code
appsettings = AppSettings()
