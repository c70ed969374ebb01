import pytest

import patch_main_windows as pmw

PRELUDE = (
    'const Dn=require("child_process"),Ee=require("fs");'
    'const Yr=process.platform==="darwin";'
    "const li=()=>({debug(){}});"
    "const sn=p=>p.find(x=>Ee.existsSync(x))||null;"
)

OPEN_EDITOR = (
    "function openEditor(f){"
    'if(!Yr)throw new Error("Opening external editors is only supported on macOS");'
    'if(process.platform==="win32")throw new Error("Opening external editors is not supported on Windows yet");'
    "return f}"
)

LIST_EDITORS = "async function oN(){if(!Yr)return[];return editors.filter(e=>e.detect())}"

EDITORS = (
    "const editors=["
    '{id:"vscode",detect:()=>Sp("code")||Sp("codium")||' + pmw.VSCODE_APP_PATHS + "},"
    '{id:"vscode-insiders",detect:()=>Sp("code-insiders")||Sp("codium-insiders")||'
    + pmw.VSCODE_INSIDERS_APP_PATHS + "}"
    "];"
)


def build_bundle(sp=pmw.OLD_SP, editors=EDITORS):
    return "\n".join([PRELUDE, sp, OPEN_EDITOR, LIST_EDITORS, editors, "module.exports={oN,openEditor};", ""])


@pytest.fixture
def bundle_source():
    return build_bundle()


@pytest.fixture
def bundle(tmp_path, bundle_source):
    path = tmp_path / "main.js"
    path.write_text(bundle_source, encoding="utf-8")
    return path


@pytest.fixture
def skip_syntax_check(monkeypatch):
    calls = []
    monkeypatch.setattr(pmw, "check_syntax", lambda content, filename="bundle.js": calls.append(filename))
    return calls
