import sys
from pathlib import Path

import pytest

from smcekit.plugin_manifest import Defaults, PluginManifest
from smcekit.sketch import ArduinoLibrary, BoardDeviceSpecification, Sketch, SketchConfig
from smcekit.toolchain import (
    Toolchain,
    ToolchainError,
    ToolchainErrorCode,
    process_libraries,
    write_devices_specs,
    write_manifests,
)


def make_fake_cmake(directory, name="cmake", version_line="cmake version 3.22.1",
                    version_exit=0, configure_exit=0, build_exit=0, create_binary=True):
    directory.mkdir(parents=True, exist_ok=True)
    log = directory / "calls.log"
    binary = str(directory / "Sketch")
    script = directory / name
    script.write_text(
        f"#!{sys.executable}\n"
        "import sys, pathlib\n"
        "args = sys.argv[1:]\n"
        f"log = pathlib.Path({str(log)!r})\n"
        "with log.open('a') as f:\n"
        "    f.write('\\x1f'.join(args) + '\\n')\n"
        "if args == ['--version']:\n"
        f"    print({version_line!r})\n"
        f"    sys.exit({version_exit})\n"
        "if '-P' in args:\n"
        "    print('-- Configuring sketch')\n"
        f"    print('-- SMCE: Sketch binary will be at \"' + {binary!r} + '\"')\n"
        f"    sys.exit({configure_exit})\n"
        "if args[:1] == ['--build']:\n"
        "    print('building sketch')\n"
        f"    if {create_binary!r}:\n"
        f"        pathlib.Path({binary!r}).write_text('bin')\n"
        f"    sys.exit({build_exit})\n"
        "sys.exit(2)\n"
    )
    script.chmod(0o755)
    return script, log, Path(binary)


@pytest.fixture
def resdir(tmp_path):
    res = tmp_path / "res"
    res.mkdir()
    (res / "marker").write_text("x")
    return res


@pytest.fixture
def sketch_dir(tmp_path):
    path = tmp_path / "sketches" / "patch"
    path.mkdir(parents=True)
    (path / "patch.ino").write_text("void setup() {}\nvoid loop() {}\n")
    return path


def esp32_manifest(name, uri):
    return PluginManifest(
        name, "0.2", [], [], uri, "file://patches/ESP32_analogRewrite",
        Defaults.ARDUINO, [], [], [], [],
    )


def test_invalid_empty_dir(tmp_path):
    path = tmp_path / "empty_dir"
    path.mkdir()
    tc = Toolchain(path)
    with pytest.raises(ToolchainError) as exc:
        tc.check_suitable_environment()
    assert exc.value.code is ToolchainErrorCode.RESDIR_EMPTY
    assert tc.resource_dir == path


def test_nonexistent_dir(tmp_path):
    path = tmp_path / "epty_dir"
    tc = Toolchain(path)
    with pytest.raises(ToolchainError) as exc:
        tc.check_suitable_environment()
    assert exc.value.code is ToolchainErrorCode.RESDIR_ABSENT
    assert tc.resource_dir == path


def test_resdir_is_file(tmp_path):
    path = tmp_path / "file"
    path.write_text("x")
    with pytest.raises(ToolchainError) as exc:
        Toolchain(path).check_suitable_environment()
    assert exc.value.code is ToolchainErrorCode.RESDIR_FILE


def test_valid_with_explicit_cmake(tmp_path, resdir):
    cmake, _, _ = make_fake_cmake(tmp_path / "bin")
    tc = Toolchain(resdir, cmake_path=str(cmake))
    tc.check_suitable_environment()
    assert tc.resource_dir == resdir
    assert tc.cmake_path == str(cmake)


def test_valid_finds_cmake_on_path(tmp_path, resdir, monkeypatch):
    bindir = tmp_path / "bin"
    make_fake_cmake(bindir)
    monkeypatch.setenv("PATH", str(bindir))
    tc = Toolchain(resdir)
    tc.check_suitable_environment()
    assert Path(tc.cmake_path) == bindir / "cmake"


def test_cmake_missing_from_path(tmp_path, resdir, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path / "nowhere"))
    with pytest.raises(ToolchainError) as exc:
        Toolchain(resdir).check_suitable_environment()
    assert exc.value.code is ToolchainErrorCode.CMAKE_NOT_FOUND


def test_empty_cmake_file(tmp_path, resdir):
    cmake = tmp_path / "cmake"
    cmake.write_text("")
    with pytest.raises(ToolchainError) as exc:
        Toolchain(resdir, cmake_path=str(cmake)).check_suitable_environment()
    assert exc.value.code is ToolchainErrorCode.CMAKE_NOT_FOUND


def test_cmake_failing(tmp_path, resdir):
    cmake, _, _ = make_fake_cmake(tmp_path / "bin", version_exit=1)
    with pytest.raises(ToolchainError) as exc:
        Toolchain(resdir, cmake_path=str(cmake)).check_suitable_environment()
    assert exc.value.code is ToolchainErrorCode.CMAKE_FAILING


def test_cmake_unknown_output(tmp_path, resdir):
    cmake, _, _ = make_fake_cmake(tmp_path / "bin", version_line="make 4.3")
    with pytest.raises(ToolchainError) as exc:
        Toolchain(resdir, cmake_path=str(cmake)).check_suitable_environment()
    assert exc.value.code is ToolchainErrorCode.CMAKE_UNKNOWN_OUTPUT


def test_invalid_plugin_name(tmp_path, resdir, sketch_dir):
    cmake, _, _ = make_fake_cmake(tmp_path / "bin")
    tc = Toolchain(resdir, cmake_path=str(cmake))
    tc.check_suitable_environment()
    config = SketchConfig(
        "arduino:avr:nano", [], [ArduinoLibrary("ESP32 AnalogWrite")],
        [esp32_manifest("ESP32_/AnalogWrite", "https://example.com/0.2.zip")],
    )
    with Sketch(sketch_dir, config) as sk:
        with pytest.raises(ToolchainError) as exc:
            tc.compile(sk)
        assert exc.value.code is ToolchainErrorCode.INVALID_PLUGIN_NAME
        assert not sk.compiled


def test_build_failed(tmp_path, resdir, sketch_dir):
    cmake, _, _ = make_fake_cmake(tmp_path / "bin", build_exit=1)
    tc = Toolchain(resdir, cmake_path=str(cmake))
    tc.check_suitable_environment()
    config = SketchConfig(
        "arduino:avr:nano", [], [ArduinoLibrary("ESP32 AnalogWrite")],
        [esp32_manifest("ESP32_AnalogWrite", "https://example.com/armchive/0.2.zip")],
    )
    with Sketch(sketch_dir, config) as sk:
        with pytest.raises(ToolchainError) as exc:
            tc.compile(sk)
        assert exc.value.code is ToolchainErrorCode.BUILD_FAILED
        assert not sk.compiled


def test_build_failed_when_binary_missing(tmp_path, resdir, sketch_dir):
    cmake, _, _ = make_fake_cmake(tmp_path / "bin", create_binary=False)
    tc = Toolchain(resdir, cmake_path=str(cmake))
    with Sketch(sketch_dir, SketchConfig("arduino:avr:nano")) as sk:
        with pytest.raises(ToolchainError) as exc:
            tc.compile(sk)
        assert exc.value.code is ToolchainErrorCode.BUILD_FAILED


def test_configure_failed(tmp_path, resdir, sketch_dir):
    cmake, _, _ = make_fake_cmake(tmp_path / "bin", configure_exit=3)
    tc = Toolchain(resdir, cmake_path=str(cmake))
    with Sketch(sketch_dir, SketchConfig("arduino:avr:nano")) as sk:
        with pytest.raises(ToolchainError) as exc:
            tc.compile(sk)
        assert exc.value.code is ToolchainErrorCode.CONFIGURE_FAILED


def test_compile_success(tmp_path, resdir, sketch_dir):
    cmake, log, binary = make_fake_cmake(tmp_path / "bin")
    tc = Toolchain(resdir, cmake_path=str(cmake))
    config = SketchConfig(
        "arduino:avr:nano",
        legacy_preproc_libs=[ArduinoLibrary("WiFi"), ArduinoLibrary("MQTT", "2.5")],
        plugins=[esp32_manifest("ESP32_AnalogWrite", "https://example.com/0.2.zip")],
    )
    with Sketch(sketch_dir, config) as sk:
        tc.compile(sk)
        assert sk.compiled
        assert sk.executable == binary
        tmpdir = resdir / "tmp" / sk.uuid.to_hex()
        assert sk.tmpdir == tmpdir
        assert (tmpdir / "Devices.cmake").is_file()
        assert (tmpdir / "manifests" / "ESP32_AnalogWrite.cmake").is_file()
        calls = [line.split("\x1f") for line in log.read_text().splitlines()]
        configure, build = calls
        assert configure[0] == f"-DSMCE_DIR={resdir}"
        assert f"-DSKETCH_HEXID={sk.uuid.to_hex()}" in configure
        assert "-DSKETCH_FQBN=arduino:avr:nano" in configure
        assert f"-DSKETCH_PATH={sketch_dir.absolute().as_posix()}" in configure
        assert "-DPREPROC_REMOTE_LIBS=WiFi;MQTT@2.5" in configure
        assert configure[-2:] == [
            "-P", str(resdir) + "/RtResources/SMCE/share/CMake/Scripts/ConfigureSketch.cmake",
        ]
        assert build == ["--build", str(tmpdir / "build"), "--config", "Release"]
    assert tc.build_log() == "-- Configuring sketch\nbuilding sketch\n"


def test_compile_missing_source(tmp_path, resdir):
    tc = Toolchain(resdir)
    sk = Sketch(tmp_path / "absent", SketchConfig("arduino:avr:nano"))
    with pytest.raises(ToolchainError) as exc:
        tc.compile(sk)
    assert exc.value.code is ToolchainErrorCode.SKETCH_INVALID
    assert not sk.compiled


def test_compile_empty_fqbn(resdir, sketch_dir):
    tc = Toolchain(resdir)
    sk = Sketch(sketch_dir, SketchConfig())
    with pytest.raises(ToolchainError) as exc:
        tc.compile(sk)
    assert exc.value.code is ToolchainErrorCode.SKETCH_INVALID


def test_process_libraries():
    assert process_libraries(SketchConfig()) == "-DPREPROC_REMOTE_LIBS="
    config = SketchConfig(legacy_preproc_libs=[ArduinoLibrary("SD")])
    assert process_libraries(config) == "-DPREPROC_REMOTE_LIBS=SD"
    config = SketchConfig(
        legacy_preproc_libs=[ArduinoLibrary("WiFi"), ArduinoLibrary("MQTT", "1.0")]
    )
    assert process_libraries(config) == "-DPREPROC_REMOTE_LIBS=WiFi;MQTT@1.0"


@pytest.mark.parametrize("name", [".", "..", "a/b"])
def test_write_manifests_rejects_names(tmp_path, name):
    config = SketchConfig(plugins=[PluginManifest(name)])
    with pytest.raises(ToolchainError) as exc:
        write_manifests(config, tmp_path)
    assert exc.value.code is ToolchainErrorCode.INVALID_PLUGIN_NAME


def test_write_manifests_writes_files(tmp_path):
    config = SketchConfig(plugins=[PluginManifest("Alpha"), PluginManifest("Beta")])
    write_manifests(config, tmp_path)
    names = sorted(p.name for p in (tmp_path / "manifests").iterdir())
    assert names == ["Alpha.cmake", "Beta.cmake"]
    assert 'set (PLUGIN_NAME "Alpha")' in (tmp_path / "manifests" / "Alpha.cmake").read_text()


def test_write_devices_specs(tmp_path):
    config = SketchConfig(genbind_devices=[
        BoardDeviceSpecification("TestUDD u8 f1 a16 f2", "TestUDD"),
    ])
    write_devices_specs(config, tmp_path)
    assert (tmp_path / "Devices.cmake").read_text() == (
        "# HSD generated\ninclude (BindGen)\nsmce_bindgen_sketch (TestUDD u8 f1 a16 f2)\n"
    )


def test_error_messages():
    assert str(ToolchainError(ToolchainErrorCode.CMAKE_NOT_FOUND)) == "CMake not found in PATH"
    assert str(ToolchainError(ToolchainErrorCode.BUILD_FAILED)) == "CMake build failed"
    assert str(ToolchainError(ToolchainErrorCode.CMAKE_FAILING)) == "smce.toolchain error"
    assert ToolchainErrorCode.GENERIC == 255