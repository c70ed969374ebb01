#!/usr/bin/env python3
"""
Patch the Codex Electron main bundle for Windows compatibility.

Replaces macOS-only editor detection with cross-platform equivalents:
drops the macOS/Windows editor guards, swaps the `which`-based command
lookup for one that uses `where` on Windows, and lets the VS Code detectors
honor CODEX_VSCODE_PATH / CODEX_VSCODE_INSIDERS_PATH and `.cmd` shims.

The result is checked with `node --check` before it is written back.

Usage:
    python3 patches/patch_main_windows.py <path-to-main-bundle.js>
"""

import os
import subprocess
import sys
import tempfile

PATCHED = "patched"
NO_MATCH = "no-match"
INVALID = "invalid"

ERROR_EXCERPT = 300


class SyntaxCheckError(Exception):
    """Raised when the patched bundle no longer parses."""


VSCODE_APP_PATHS = (
    'sn(["/Applications/Visual Studio Code.app/Contents/Resources/app/bin/code",'
    '"/Applications/Code.app/Contents/Resources/app/bin/code"])'
)
VSCODE_INSIDERS_APP_PATHS = (
    'sn(["/Applications/Visual Studio Code - Insiders.app/Contents/Resources/app/bin/code",'
    '"/Applications/Code - Insiders.app/Contents/Resources/app/bin/code"])'
)

# Body shared by both shipped variants of Sp (with and without the macOS guard)
_SP_LOOKUP = (
    'try{const e=Dn.spawnSync("which",[t],{encoding:"utf8",timeout:1e3}),n=e.stdout?.trim();'
    'if(e.status===0&&n&&Ee.existsSync(n))return n}'
    'catch(e){li().debug("Failed to locate command in PATH",{safe:{command:t},sensitive:{error:e}})}'
    'return null}'
)
OLD_SP = "function Sp(t){" + _SP_LOOKUP
OLD_SP_MAC_GUARD = "function Sp(t){if(!Yr)return null;" + _SP_LOOKUP

NEW_SP = "".join([
    "function Sp(t){",
    'var cmds=process.platform==="win32"?["where"]:["which"];',
    "for(var ci=0;ci<cmds.length;ci++){",
    "try{",
    'var e=Dn.spawnSync(cmds[ci],[t],{encoding:"utf8",timeout:1e3}),',
    r"n=e.stdout&&e.stdout.split(/\r?\n/).find(Boolean);",
    "n=n&&n.trim();",
    "if(e.status===0&&n&&Ee.existsSync(n))return n",
    '}catch(e){li().debug("Failed to locate command in PATH",{safe:{command:t},sensitive:{error:e}})}',
    "}",
    "return null}",
])


def detect_closure(env_var, commands, app_paths):
    """Build a detect closure: env override, then PATH lookups, then app paths."""
    lookups = "||".join('Sp("%s")' % cmd for cmd in commands)
    return (
        "detect:()=>{var i=process.env.%s;"
        "if(i&&i.trim()&&Ee.existsSync(i.trim()))return i.trim();"
        "return %s||%s}" % (env_var, lookups, app_paths)
    )


# (name, candidates, replacement), applied in order.  The detect rules emit
# calls to Sp, so resolve-command has to run before them.
RULES = [
    (
        "macos-editor-guard",
        ('if(!Yr)throw new Error("Opening external editors is only supported on macOS");',),
        "",
    ),
    (
        "windows-editor-guard",
        ('if(process.platform==="win32")throw new Error('
         '"Opening external editors is not supported on Windows yet");',),
        "",
    ),
    (
        "editor-list-guard",
        ("async function oN(){if(!Yr)return[];",),
        "async function oN(){",
    ),
    (
        "resolve-command",
        (OLD_SP, OLD_SP_MAC_GUARD),
        NEW_SP,
    ),
    (
        "vscode-detect",
        (
            'detect:()=>Sp("code")||Sp("codium")||' + VSCODE_APP_PATHS,
            "detect:()=>" + VSCODE_APP_PATHS,
        ),
        detect_closure(
            "CODEX_VSCODE_PATH",
            ["code.cmd", "code", "codium.cmd", "codium"],
            VSCODE_APP_PATHS,
        ),
    ),
    (
        "vscode-insiders-detect",
        (
            'detect:()=>Sp("code-insiders")||Sp("codium-insiders")||' + VSCODE_INSIDERS_APP_PATHS,
            "detect:()=>" + VSCODE_INSIDERS_APP_PATHS,
        ),
        detect_closure(
            "CODEX_VSCODE_INSIDERS_PATH",
            ["code-insiders.cmd", "code-insiders", "codium-insiders.cmd", "codium-insiders"],
            VSCODE_INSIDERS_APP_PATHS,
        ),
    ),
]


def apply_rules(content, rules=RULES):
    """Apply each rule's first matching candidate once.

    Returns the new content and the names of the rules that matched.
    """
    applied = []
    for name, candidates, replacement in rules:
        for candidate in candidates:
            if candidate in content:
                content = content.replace(candidate, replacement, 1)
                applied.append(name)
                break
    return content, applied


def check_syntax(content, filename="bundle.js"):
    """Parse `content` with `node --check`; raise SyntaxCheckError if it fails."""
    with tempfile.TemporaryDirectory(prefix="patch_main_windows_") as tmpdir:
        # .cjs keeps node from treating the file as an ES module
        script = os.path.join(tmpdir, os.path.basename(filename) + ".cjs")
        with open(script, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        try:
            proc = subprocess.run(
                ["node", "--check", script],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except FileNotFoundError:
            raise SyntaxCheckError("node not found on PATH; cannot validate patched bundle")
    if proc.returncode != 0:
        raise SyntaxCheckError(proc.stdout.strip() or "node --check exited with %d" % proc.returncode)


def patch_file(filepath):
    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        original = f.read()

    content, applied = apply_rules(original)
    for name, _, _ in RULES:
        if name in applied:
            print(f"  {name}: patched")
        else:
            print(f"  {name}: not found, skipped")

    if content == original:
        print("No patches matched (bundle may already be patched or patterns changed).")
        return NO_MATCH

    try:
        check_syntax(content, filepath)
    except SyntaxCheckError as e:
        print("ERROR: Patched bundle has a syntax error, aborting write.", file=sys.stderr)
        print(str(e)[:ERROR_EXCERPT], file=sys.stderr)
        return INVALID

    with open(filepath, 'w', encoding='utf-8', newline='') as f:
        f.write(content)

    line_count = len(content.split("\n"))
    print(f"Patch applied successfully. Lines: {line_count}")
    return PATCHED


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__)
        return 1
    return 1 if patch_file(argv[0]) == INVALID else 0


if __name__ == "__main__":
    sys.exit(main())
