"""
Tests for the package-manager adapters — command lines and output parsing.

Every adapter runs against a MockShell, so the tests see exactly which
command line would have been executed.
"""

import os
import textwrap

import pytest

from devinstall.adapters.mock import MockShell
from devinstall.adapters.package_managers import apt, brew, choco, dnf, snap, winget
from devinstall.adapters.package_managers.choco import CHOCO_BIN_DIR


@pytest.fixture
def choco_adapter(tmp_path):
    shell = MockShell(["choco"])
    return choco.ChocoAdapter(shell, known_path=str(tmp_path / "choco.exe"))


# ── Homebrew ─────────────────────────────────────────────────────────


class TestBrew:
    def test_install_commands(self):
        shell = MockShell(["brew"])
        adapter = brew.BrewAdapter(shell)
        adapter.install("jq")
        adapter.install("pngyu", cask=True)
        adapter.install_cask("basictex")
        assert shell.call_log == [
            "brew install jq",
            "brew install --cask pngyu",
            "brew install --cask basictex",
        ]

    def test_display_name(self):
        assert brew.BrewAdapter(MockShell()).display_name == "Homebrew"

    def test_formula_and_cask_checks(self):
        shell = MockShell(["brew"])
        shell.set_response("brew list --cask", exit_code=1)
        adapter = brew.BrewAdapter(shell)
        assert adapter.is_package_installed("jq")
        assert not adapter.is_cask_installed("pngyu")
        assert shell.ran("brew list --formula jq")

    def test_newest_version_is_last(self):
        shell = MockShell(["brew"])
        shell.set_response("brew list --versions jq", stdout="jq 1.7.1 1.8.1\n")
        assert brew.BrewAdapter(shell).get_package_version("jq") == "1.8.1"

    def test_version_missing_package(self):
        shell = MockShell(["brew"])
        shell.set_response("brew list --versions", stdout="")
        assert brew.BrewAdapter(shell).get_package_version("nope") is None

    def test_queries_without_brew(self):
        shell = MockShell()
        adapter = brew.BrewAdapter(shell)
        assert adapter.is_package_installed("jq") is False
        assert adapter.get_version() is None
        assert adapter.search("jq") == []
        assert shell.call_count == 0

    def test_parse_version(self):
        assert brew.parse_version_output("Homebrew 4.4.2\nHomebrew/homebrew-core (git revision 1a2b)") == "4.4.2"
        assert brew.parse_version_output("garbage") is None

    def test_parse_search(self):
        text = textwrap.dedent("""\
            ==> Formulae
            jq          jql
            jqp

            ==> Casks
            jqbx
        """)
        rows = brew.parse_search_output(text)
        assert [(r.name, r.kind) for r in rows] == [
            ("jq", "formula"), ("jql", "formula"), ("jqp", "formula"), ("jqbx", "cask"),
        ]

    def test_parse_search_without_headers(self):
        assert [r.kind for r in brew.parse_search_output("jq\n")] == ["formula"]

    def test_uninstall_cask_and_info(self):
        shell = MockShell(["brew"])
        shell.set_response("brew info jq", stdout="==> jq: stable 1.8.1\n")
        adapter = brew.BrewAdapter(shell)
        assert adapter.uninstall_cask("pngyu").success
        assert adapter.info("jq").startswith("==> jq")
        assert shell.ran("brew uninstall --cask pngyu")

    def test_list_installed(self):
        shell = MockShell(["brew"])
        shell.set_response("brew list --formula", stdout="go\njq\n")
        shell.set_response("brew list --cask", stdout="pngyu\n")
        rows = brew.BrewAdapter(shell).list_installed()
        assert [(r.name, r.kind) for r in rows] == [("go", "formula"), ("jq", "formula"), ("pngyu", "cask")]


# ── APT ──────────────────────────────────────────────────────────────

DPKG_LIST = textwrap.dedent("""\
    Desired=Unknown/Install/Remove/Purge/Hold
    | Status=Not/Inst/Conf-files/Unpacked/halF-conf/Half-inst/trig-aWait/Trig-pend
    ||/ Name           Version        Architecture Description
    +++-==============-==============-============-=================================
    ii  jq:amd64       1.7.1-3build1  amd64        lightweight and flexible command-line JSON processor
    rc  pandoc         2.9.2.1-3      amd64        general markup converter
""")


class TestApt:
    def test_install_commands(self):
        shell = MockShell(["apt-get"])
        adapter = apt.AptAdapter(shell)
        adapter.install("jq")
        adapter.install("snapd", noninteractive=True)
        adapter.install("file", auto_confirm=False)
        assert shell.call_log == [
            "sudo apt-get install -y jq",
            "sudo DEBIAN_FRONTEND=noninteractive apt-get install -y snapd",
            "sudo apt-get install file",
        ]

    def test_update_commands(self):
        shell = MockShell(["apt-get"])
        adapter = apt.AptAdapter(shell)
        adapter.update()
        adapter.update(noninteractive=True)
        assert shell.call_log == [
            "sudo apt-get update",
            "sudo DEBIAN_FRONTEND=noninteractive apt-get update -y",
        ]

    def test_availability_checks_apt_get(self):
        assert not apt.AptAdapter(MockShell(["apt"])).is_available()
        assert apt.AptAdapter(MockShell(["apt-get"])).is_available()
        assert apt.AptAdapter(MockShell()).display_name == "apt-get"

    def test_parse_dpkg_list(self):
        assert apt.parse_dpkg_list(DPKG_LIST, "jq") == "1.7.1-3build1"
        # removed-but-configured rows do not count
        assert apt.parse_dpkg_list(DPKG_LIST, "pandoc") is None
        assert apt.parse_dpkg_list(DPKG_LIST, "yq") is None

    def test_is_package_installed(self):
        shell = MockShell(["apt-get"])
        shell.set_response("dpkg -l jq", stdout=DPKG_LIST)
        shell.set_response("dpkg -l build-essential", exit_code=1)
        adapter = apt.AptAdapter(shell)
        assert adapter.is_package_installed("jq")
        assert not adapter.is_package_installed("build-essential")

    def test_parse_search(self):
        text = "jq - lightweight and flexible command-line JSON processor\nlibjq1\n"
        rows = apt.parse_search_output(text)
        assert rows[0].name == "jq"
        assert rows[0].summary == "lightweight and flexible command-line JSON processor"
        assert rows[1].name == "libjq1"

    def test_parse_selections(self):
        text = "jq\t\t\t\t\tinstall\nold-tool\t\t\t\tdeinstall\n"
        assert [r.name for r in apt.parse_selections(text)] == ["jq"]

    def test_add_repository_installs_helper(self):
        shell = MockShell(["apt-get"])
        result = apt.AptAdapter(shell).add_repository("ppa:longsleep/golang-backports")
        assert result.success
        assert shell.call_log == [
            "sudo apt-get install -y software-properties-common",
            'sudo add-apt-repository -y "ppa:longsleep/golang-backports"',
        ]

    def test_add_key(self):
        shell = MockShell(["apt-get"])
        adapter = apt.AptAdapter(shell)
        adapter.add_key("https://example.org/key.gpg", "/etc/apt/keyrings/example.gpg")
        adapter.add_key("https://example.org/key.gpg")
        assert shell.call_log == [
            'curl -fsSL "https://example.org/key.gpg" | sudo gpg --dearmor -o "/etc/apt/keyrings/example.gpg"',
            'curl -fsSL "https://example.org/key.gpg" | sudo apt-key add -',
        ]

    def test_clean(self):
        shell = MockShell(["apt-get"])
        assert apt.AptAdapter(shell).clean().success
        assert shell.call_log == ["sudo apt-get clean && sudo apt-get autoremove -y"]


# ── DNF / YUM ────────────────────────────────────────────────────────


class TestDnf:
    def test_binary_detection(self):
        assert dnf.DnfAdapter(MockShell(["dnf"])).binary == "dnf"
        yum = dnf.DnfAdapter(MockShell(["yum"]))
        assert yum.binary == "yum"
        assert yum.display_name == "yum"
        assert yum.is_available()
        assert yum.name == "dnf"

    def test_install_commands(self):
        shell = MockShell(["dnf"])
        adapter = dnf.DnfAdapter(shell, binary="dnf")
        adapter.install("jq")
        adapter.group_install("Development Tools")
        assert shell.call_log == [
            "sudo dnf install -y jq",
            'sudo dnf groupinstall -y "Development Tools"',
        ]

    def test_unavailable(self):
        shell = MockShell()
        result = dnf.DnfAdapter(shell, binary="yum").install("jq")
        assert result.output == "yum is not installed"
        assert shell.call_count == 0

    def test_package_version(self):
        shell = MockShell(["dnf"])
        shell.set_response("rpm -q --qf", stdout="1.7.1")
        assert dnf.DnfAdapter(shell).get_package_version("jq") == "1.7.1"

    def test_parse_search(self):
        text = textwrap.dedent("""\
            Last metadata expiration check: 0:12:01 ago on Mon 13 Oct 2025 09:00:00 AM UTC.
            ======================== Name Exactly Matched: jq ========================
            jq.x86_64 : Command-line JSON processor
            jq-devel.aarch64 : Development files for jq
        """)
        rows = dnf.parse_search_output(text)
        assert [(r.name, r.summary) for r in rows] == [
            ("jq", "Command-line JSON processor"),
            ("jq-devel", "Development files for jq"),
        ]

    def test_parse_list(self):
        text = textwrap.dedent("""\
            Last metadata expiration check: 0:12:01 ago on Mon 13 Oct 2025.
            Installed Packages
            jq.x86_64                1.7.1-8.amzn2023     @amazonlinux
            libsecret.x86_64         0.20.5-1.amzn2023    @System
        """)
        rows = dnf.parse_list_output(text)
        assert [(r.name, r.version) for r in rows] == [
            ("jq", "1.7.1-8.amzn2023"),
            ("libsecret", "0.20.5-1.amzn2023"),
        ]


# ── Chocolatey ───────────────────────────────────────────────────────

CHOCO_LIST = textwrap.dedent("""\
    Chocolatey v2.2.2
    chocolatey 2.2.2
    jq 1.7.1
    2 packages installed.
""")


class TestChoco:
    def test_install_commands(self, choco_adapter):
        choco_adapter.install("jq")
        choco_adapter.install(
            "visualstudio2022-workload-vctools",
            force=True,
            version="1.0.0",
            params="--includeRecommended",
            timeout=1200,
        )
        assert choco_adapter.shell.call_log == [
            '"choco" install jq -y',
            '"choco" install visualstudio2022-workload-vctools -y --force --version=1.0.0'
            ' --package-parameters "--includeRecommended"',
        ]

    def test_known_path_fallback(self, tmp_path):
        known = tmp_path / "choco.exe"
        known.write_text("")
        shell = MockShell()
        adapter = choco.ChocoAdapter(shell, known_path=str(known))
        assert adapter.is_available()
        adapter.install("jq")
        assert shell.call_log == [f'"{known}" install jq -y']

    def test_unavailable(self, tmp_path):
        shell = MockShell()
        adapter = choco.ChocoAdapter(shell, known_path=str(tmp_path / "choco.exe"))
        assert adapter.install("jq").output == "Chocolatey is not installed"
        assert adapter.is_package_installed("jq") is False
        assert shell.call_count == 0

    def test_package_version(self, choco_adapter):
        choco_adapter.shell.set_response("list --local-only --exact", stdout=CHOCO_LIST)
        assert choco_adapter.get_package_version("jq") == "1.7.1"
        assert choco_adapter.is_package_installed("JQ")
        assert not choco_adapter.is_package_installed("yq")

    def test_parse_rows_skips_banners(self):
        rows = choco.parse_package_rows(CHOCO_LIST)
        assert [(r.name, r.version) for r in rows] == [("chocolatey", "2.2.2"), ("jq", "1.7.1")]

    def test_parse_outdated(self):
        text = textwrap.dedent("""\
            Chocolatey v2.2.2
            Outdated Packages
             Output is package name | current version | available version | pinned?

            git|2.43.0|2.44.0|false
            jq|1.6|1.7.1|true

            Chocolatey has determined 2 package(s) are outdated.
        """)
        rows = choco.parse_outdated_output(text)
        assert [(r.name, r.version, r.summary) for r in rows] == [
            ("git", "2.43.0", "2.44.0"),
            ("jq", "1.6", "1.7.1"),
        ]

    def test_outdated_and_pins(self, choco_adapter):
        choco_adapter.shell.set_response('"choco" outdated', stdout="git|2.43.0|2.44.0|false\n")
        assert [r.name for r in choco_adapter.list_outdated()] == ["git"]
        choco_adapter.pin("jq")
        choco_adapter.unpin("jq")
        assert choco_adapter.shell.ran('"choco" pin add -n="jq"')
        assert choco_adapter.shell.ran('"choco" pin remove -n="jq"')

    def test_command_binary_path(self, choco_adapter, monkeypatch):
        assert choco_adapter.command_binary_path("jq") is None
        monkeypatch.setattr(choco.Path, "is_file", lambda self: True)
        assert choco_adapter.command_binary_path("jq") == CHOCO_BIN_DIR + "\\jq.exe"

    def test_add_bin_to_path(self, choco_adapter, monkeypatch):
        monkeypatch.setenv("PATH", "C:\\Windows\\system32")
        assert choco_adapter.add_bin_to_path() is True
        assert os.environ["PATH"].startswith(CHOCO_BIN_DIR + ";")
        assert CHOCO_BIN_DIR in choco_adapter.shell.extra_paths
        assert choco_adapter.add_bin_to_path() is False


# ── Snap ─────────────────────────────────────────────────────────────

SNAP_LIST = textwrap.dedent("""\
    Name    Version   Rev    Tracking       Publisher   Notes
    core22  20240111  1122   latest/stable  canonical✓  base
    yq      v4.44.3   2634   latest/stable  mikefarah   -
""")


class TestSnap:
    def test_install_commands(self):
        shell = MockShell(["snap"])
        adapter = snap.SnapAdapter(shell)
        adapter.install("yq")
        adapter.install("go", classic=True, channel="1.22/stable")
        assert shell.call_log == [
            "sudo snap install yq",
            "sudo snap install go --classic --channel=1.22/stable",
        ]

    def test_parse_list(self):
        rows = snap.parse_list_output(SNAP_LIST)
        assert [(r.name, r.version) for r in rows] == [("core22", "20240111"), ("yq", "v4.44.3")]

    def test_package_version(self):
        shell = MockShell(["snap"])
        shell.set_response("snap list yq", stdout="Name  Version  Rev\nyq    v4.44.3  2634\n")
        assert snap.SnapAdapter(shell).get_package_version("yq") == "v4.44.3"

    def test_parse_find(self):
        text = textwrap.dedent("""\
            Name  Version  Publisher  Notes  Summary
            yq    v4.44.3  mikefarah  -      A lightweight and portable command-line YAML processor
        """)
        row = snap.parse_find_output(text)[0]
        assert row.name == "yq"
        assert row.id == "mikefarah"
        assert row.summary == "A lightweight and portable command-line YAML processor"

    def test_version(self):
        shell = MockShell(["snap"])
        shell.set_response("snap version", stdout="snap    2.63\nsnapd   2.63\n")
        assert snap.SnapAdapter(shell).get_version() == "2.63"


# ── winget ───────────────────────────────────────────────────────────

WINGET_TABLE = textwrap.dedent("""\
    Name                     Id          Version  Source
    -----------------------------------------------------
    jq                       jqlang.jq   1.7.1    winget
    Go Programming Language  GoLang.Go   1.22.1   winget
""")


class TestWinget:
    def test_install_commands(self):
        shell = MockShell(["winget"])
        adapter = winget.WingetAdapter(shell)
        adapter.install("GoLang.Go")
        adapter.install("jqlang.jq", silent=False, version="1.7.1", source="winget")
        assert shell.call_log == [
            'winget install "GoLang.Go" --accept-package-agreements --accept-source-agreements --silent',
            'winget install "jqlang.jq" --accept-package-agreements --accept-source-agreements'
            ' --version "1.7.1" --source winget',
        ]

    def test_parse_table(self):
        rows = winget.parse_table_output(WINGET_TABLE)
        assert [(r.name, r.id, r.version) for r in rows] == [
            ("jq", "jqlang.jq", "1.7.1"),
            ("Go Programming Language", "GoLang.Go", "1.22.1"),
        ]

    def test_find_version(self):
        assert winget.find_package_version(WINGET_TABLE, "GoLang.Go") == "1.22.1"
        assert winget.find_package_version(WINGET_TABLE, "Pandoc") is None

    def test_is_package_installed_by_id_then_name(self):
        shell = MockShell(["winget"])
        shell.set_response('--id "jq"', exit_code=1, stdout="No installed package found.")
        shell.set_response('--name "jq"', stdout=WINGET_TABLE)
        assert winget.WingetAdapter(shell).is_package_installed("jq")
        assert shell.ran('winget list --exact --name "jq"')

    def test_parse_upgrade(self):
        text = textwrap.dedent("""\
            Name  Id         Version  Available  Source
            -------------------------------------------
            jq    jqlang.jq  1.6      1.7.1      winget
            1 upgrades available.
        """)
        rows = winget.parse_upgrade_output(text)
        assert [(r.id, r.version, r.summary) for r in rows] == [("jqlang.jq", "1.6", "1.7.1")]

    def test_upgrades_and_sources(self):
        shell = MockShell(["winget"])
        shell.set_response("winget upgrade", stdout="Name  Id         Version  Available  Source\n"
                                                    "-------------------------------------------\n"
                                                    "jq    jqlang.jq  1.6      1.7.1      winget\n")
        adapter = winget.WingetAdapter(shell)
        assert [r.id for r in adapter.list_upgradable()] == ["jqlang.jq"]
        assert adapter.update_sources().success
        assert shell.ran("winget source update")

    def test_version(self):
        shell = MockShell(["winget"])
        shell.set_response("winget --version", stdout="v1.9.25200\n")
        assert winget.WingetAdapter(shell).get_version() == "1.9.25200"


# ── Timeouts ─────────────────────────────────────────────────────────


class _TimedShell(MockShell):
    """MockShell that also keeps the timeout each command ran with."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.timeouts: list[tuple[str, int | None]] = []

    def run(self, command, **kwargs):
        self.timeouts.append((command, kwargs.get("timeout")))
        return super().run(command, **kwargs)


class TestInstallTimeouts:
    @pytest.mark.parametrize("adapter_cls, executable", [
        (brew.BrewAdapter, "brew"),
        (apt.AptAdapter, "apt-get"),
        (dnf.DnfAdapter, "dnf"),
        (choco.ChocoAdapter, "choco"),
        (snap.SnapAdapter, "snap"),
        (winget.WingetAdapter, "winget"),
    ])
    def test_install_forwards_timeout(self, adapter_cls, executable):
        shell = _TimedShell([executable])
        assert adapter_cls(shell).install("jq", timeout=5).success
        assert shell.timeouts == [(shell.call_log[0], 5)]

    def test_cask_forwards_timeout(self):
        shell = _TimedShell(["brew"])
        brew.BrewAdapter(shell).install("pngyu", cask=True, timeout=900)
        assert shell.timeouts == [("brew install --cask pngyu", 900)]
