"""
Shell scripts embedded into generated projects.

The scripts are stored as templates and written into the project file as
text; crate2xcode never runs them. Placeholders look like @NAME@ and are
filled in by plain string replacement.
"""

from __future__ import annotations

import re

PLACEHOLDERS = ("GENERATOR_VERSION",)

_PLACEHOLDER_RE = re.compile(r'@([A-Z][A-Z0-9_]*)@')

# Run by the build rule once per architecture/platform for each target.
BUILD_SCRIPT = r'''# generated with crate2xcode @GENERATOR_VERSION@
set -eu; export PATH="$HOME/.cargo/bin:$PATH:/usr/local/bin";
if [ "${IS_MACCATALYST-NO}" = YES ]; then
    CARGO_XCODE_TARGET_TRIPLE="${CARGO_XCODE_TARGET_ARCH}-apple-ios-macabi"
    CARGO_XCODE_USE_NIGHTLY="+nightly"
    CARGO_XCODE_BUILD_FLAGS="-Z build-std=panic_abort,std"
else
    CARGO_XCODE_TARGET_TRIPLE="${CARGO_XCODE_TARGET_ARCH}-apple-${CARGO_XCODE_TARGET_OS}"
    CARGO_XCODE_USE_NIGHTLY=""
    CARGO_XCODE_BUILD_FLAGS=""
fi
if [ "$CARGO_XCODE_TARGET_OS" != "darwin" ]; then
    PATH="${PATH/\/Contents\/Developer\/Toolchains\/XcodeDefault.xctoolchain\/usr\/bin:/xcode-provided-ld-cant-link-lSystem-for-the-host-build-script:}"
fi
PATH="$PATH:/opt/homebrew/bin" # cargo builds often need extra tools like nasm, which Xcode lacks
if [ "$CARGO_XCODE_BUILD_MODE" == release ]; then
    OTHER_INPUT_FILE_FLAGS="${OTHER_INPUT_FILE_FLAGS} --release"
fi
if command -v rustup &> /dev/null; then
    if ! rustup target list --installed | egrep -q "${CARGO_XCODE_TARGET_TRIPLE}"; then
        echo "warning: this build requires rustup toolchain for $CARGO_XCODE_TARGET_TRIPLE, but it isn't installed"
    fi
fi
if [ "$ACTION" = clean ]; then
 ( set -x; cargo $CARGO_XCODE_USE_NIGHTLY clean $CARGO_XCODE_BUILD_FLAGS --manifest-path="$SCRIPT_INPUT_FILE" ${OTHER_INPUT_FILE_FLAGS} --target="${CARGO_XCODE_TARGET_TRIPLE}"; );
else
 ( set -x; cargo $CARGO_XCODE_USE_NIGHTLY build $CARGO_XCODE_BUILD_FLAGS --manifest-path="$SCRIPT_INPUT_FILE" --features="${CARGO_XCODE_FEATURES:-}" ${OTHER_INPUT_FILE_FLAGS} --target="${CARGO_XCODE_TARGET_TRIPLE}"; );
fi
# cargo's real output path can't be described to Xcode's build graph, so hardlink to a known path
BUILT_SRC="${CARGO_TARGET_DIR}/${CARGO_XCODE_TARGET_TRIPLE}/${CARGO_XCODE_BUILD_MODE}/${CARGO_XCODE_CARGO_FILE_NAME}"
ln -f -- "$BUILT_SRC" "$SCRIPT_OUTPUT_FILE_0"

# Xcode reads the dep file for its own output path, so append the hardlink to it
DEP_FILE_SRC="${CARGO_TARGET_DIR}/${CARGO_XCODE_TARGET_TRIPLE}/${CARGO_XCODE_BUILD_MODE}/${CARGO_XCODE_CARGO_DEP_FILE_NAME}"
if [ -f "$DEP_FILE_SRC" ]; then
    DEP_FILE_DST="${DERIVED_FILE_DIR}/${CARGO_XCODE_TARGET_ARCH}-${EXECUTABLE_NAME}.d"
    cp -f "$DEP_FILE_SRC" "$DEP_FILE_DST"

    echo >> "$DEP_FILE_DST" "$(echo "$SCRIPT_OUTPUT_FILE_0" | sed 's/ /\\ /g'): $(echo "$BUILT_SRC" | sed 's/ /\\ /g')"
fi

# the lipo phase needs every per-arch file that has been built;
# ARCHS is in the list name so stale paths go away when archs change
FILE_LIST="${DERIVED_FILE_DIR}/${ARCHS}-${EXECUTABLE_NAME}.xcfilelist"
touch "$FILE_LIST"
if ! egrep -q "$SCRIPT_OUTPUT_FILE_0" "$FILE_LIST" ; then
    echo >> "$FILE_LIST" "$SCRIPT_OUTPUT_FILE_0"
fi
'''

# Run once per target after all architectures are built.
MERGE_SCRIPT = r'''# generated with crate2xcode @GENERATOR_VERSION@
set -eux; cat "$DERIVED_FILE_DIR/$ARCHS-$EXECUTABLE_NAME.xcfilelist" | tr '\n' '\0' | xargs -0 lipo -create -output "$TARGET_BUILD_DIR/$EXECUTABLE_PATH"
if [ ${LD_DYLIB_INSTALL_NAME:+1} ]; then
    install_name_tool -id "$LD_DYLIB_INSTALL_NAME" "$TARGET_BUILD_DIR/$EXECUTABLE_PATH"
fi
'''


def render_script(template: str, **values: str) -> str:
    """
    Fill in the @NAME@ placeholders of a script template.

    Args:
        template: BUILD_SCRIPT, MERGE_SCRIPT or another template using the
            same placeholder set
        **values: Replacement text per placeholder name

    Returns:
        The script text

    Raises:
        KeyError: If a value is given for a name outside PLACEHOLDERS
        ValueError: If the template still contains a placeholder afterwards
    """
    for name in values:
        if name not in PLACEHOLDERS:
            raise KeyError(f"Unknown script placeholder: {name}")

    text = template
    for name, value in values.items():
        text = text.replace(f"@{name}@", value)

    missing = sorted(set(_PLACEHOLDER_RE.findall(text)))
    if missing:
        raise ValueError(f"Unfilled script placeholders: {', '.join(missing)}")
    return text
