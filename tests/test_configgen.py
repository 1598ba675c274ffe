import pytest

from frr_cli_fuzzer.configgen import ConfigGenerator
from frr_cli_fuzzer.errors import ConfigWriteError

TEMPLATES = {
    "all": "hostname %(daemon)\nlog file %(logfile)\n",
    "bgpd": "router bgp 65000\n",
}


@pytest.fixture
def config_dir(runstatedir):
    path = runstatedir / "etc" / "frr"
    path.mkdir(parents=True)
    return path


def test_render_concatenates_and_substitutes(config_dir, runstatedir):
    generator = ConfigGenerator(TEMPLATES, config_dir, runstatedir)
    assert generator.render("bgpd") == (
        f"hostname bgpd\nlog file {runstatedir}/bgpd.log\nrouter bgp 65000\n"
    )


def test_render_without_daemon_template(config_dir, runstatedir):
    generator = ConfigGenerator(TEMPLATES, config_dir, runstatedir)
    assert generator.render("ospfd").startswith("hostname ospfd\n")


def test_render_with_no_templates(config_dir, runstatedir):
    assert ConfigGenerator({}, config_dir, runstatedir).render("zebra") == ""


def test_generate_all_writes_vtysh_config(config_dir, runstatedir):
    ConfigGenerator(TEMPLATES, config_dir, runstatedir).generate_all(["bgpd"])
    assert (config_dir / "vtysh.conf").read_text() == ""
    assert "router bgp 65000" in (config_dir / "bgpd.conf").read_text()


def test_vtysh_config_exists_without_daemons(config_dir, runstatedir):
    ConfigGenerator(TEMPLATES, config_dir, runstatedir).generate_all([])
    assert (config_dir / "vtysh.conf").exists()


def test_write_failure_is_fatal(runstatedir):
    generator = ConfigGenerator(TEMPLATES, runstatedir / "missing", runstatedir)
    with pytest.raises(ConfigWriteError):
        generator.generate("bgpd")
