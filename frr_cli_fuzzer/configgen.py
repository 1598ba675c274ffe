"""
configgen.py - Render one FRR configuration file per daemon.

The "all" template is shared by every daemon and the daemon's own template
is appended to it. %(daemon) and %(logfile) are replaced literally.
"""

from pathlib import Path

from frr_cli_fuzzer.errors import ConfigWriteError

SHARED_TEMPLATE = "all"
CLI_FRONTEND = "vtysh"


class ConfigGenerator:
    def __init__(self, templates: dict, config_dir, runstatedir):
        self.templates = templates
        self.config_dir = Path(config_dir)
        self.runstatedir = Path(runstatedir)

    def render(self, daemon: str) -> str:
        config = self.templates.get(SHARED_TEMPLATE) or ""
        config += self.templates.get(daemon) or ""

        # Replace variables.
        config = config.replace("%(daemon)", daemon)
        config = config.replace("%(logfile)", str(self.runstatedir / f"{daemon}.log"))
        return config

    def save(self, daemon: str, config: str) -> Path:
        path = self.config_dir / f"{daemon}.conf"
        try:
            with open(path, "w") as f:
                f.write(config)
        except OSError as e:
            raise ConfigWriteError(f"cannot write {path}: {e}") from e
        return path

    def generate(self, daemon: str) -> Path:
        return self.save(daemon, self.render(daemon))

    def generate_all(self, daemons) -> list[Path]:
        # vtysh refuses to run without its own (possibly empty) config file.
        paths = [self.save(CLI_FRONTEND, "")]
        paths.extend(self.generate(daemon) for daemon in daemons)
        return paths
