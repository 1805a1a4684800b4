"""
Symbolic decoration presets and their ffmpeg filter equivalents.

Filter ids match the ids offered by the capture UI's filter picker;
unknown ids are treated as "no filter".
"""

# Color-grading presets
FILTER_COMMANDS = {
    "none": "",

    # Color
    "warm": "colortemperature=8000",
    "cool": "colortemperature=4000",
    "vintage": "eq=saturation=0.7:brightness=0.05:contrast=1.1,colorbalance=rs=0.1:gs=-0.05:bs=-0.1",
    "sepia": "colorchannelmixer=.393:.769:.189:0:.349:.686:.168:0:.272:.534:.131",
    "bw": "hue=s=0,eq=contrast=1.2",

    # Effects
    "vignette": "vignette=PI/4",
    "bright": "eq=brightness=0.15:gamma=1.1",
    "vivid": "eq=saturation=1.5",
    "pop": "eq=contrast=1.3:saturation=1.2",

    # Fun
    "dreamy": "gblur=sigma=1.5,eq=brightness=0.08:saturation=0.9",
    "pixel": "scale=iw/8:ih/8,scale=iw*8:ih*8:flags=neighbor",
    "blur": "gblur=sigma=3",

    # Creative
    "comic": "edgedetect=low=0.1:high=0.3,negate,eq=contrast=2:brightness=0.1",
    "cartoon": "hue=s=2,eq=saturation=1.8:contrast=1.4,unsharp=5:5:1.5",
    "sketch": "edgedetect=low=0.1:high=0.4,negate",
    "noir": "hue=s=0,eq=contrast=1.5:brightness=-0.05,curves=m=0/0 0.25/0.15 0.5/0.5 0.75/0.85 1/1",
    "thermal": "colorchannelmixer=rr=0:rg=0:rb=1:ra=0:gr=0:gg=1:gb=0:ga=0:br=1:bg=0:bb=0:ba=0,eq=saturation=2:contrast=1.3",
    "xray": "negate,hue=s=0,eq=contrast=1.3:brightness=0.1",
    "glitch": "rgbashift=rh=-5:gh=3:bh=5,eq=saturation=1.2,noise=alls=20:allf=t",
    "vhs": "curves=vintage,noise=alls=30:allf=t,eq=saturation=0.8:contrast=1.1,vignette=PI/3",
    "sunset": "colortemperature=3500,eq=saturation=1.3:brightness=0.05,vignette=PI/5",
    "neon": "eq=saturation=2.5:contrast=1.4:brightness=0.1,unsharp=5:5:2",
    "filmgrain": "noise=alls=25:allf=t,eq=saturation=0.9:contrast=1.1",

    # Legacy ids still stored on older jobs
    "chrome": "eq=saturation=1.4:contrast=1.1",
    "fade": "curves=vintage",
    "instant": "colortemperature=6500,eq=saturation=0.8",
    "process": "colortemperature=8000",
    "transfer": "colortemperature=5000,eq=saturation=1.1",
}


def filter_command(filter_id):
    """Concrete filter chain for a preset id, or None when nothing should be applied."""
    if not filter_id:
        return None
    return FILTER_COMMANDS.get(filter_id) or None


def _solid_border(color, width):
    return ",".join([
        f"drawbox=x=0:y=0:w={width}:h=ih:color={color}:t=fill",
        f"drawbox=x=iw-{width}:y=0:w={width}:h=ih:color={color}:t=fill",
        f"drawbox=x=0:y=0:w=iw:h={width}:color={color}:t=fill",
        f"drawbox=x=0:y=ih-{width}:w=iw:h={width}:color={color}:t=fill",
    ])


def _double_border(color, width, inner_ratio, gap_ratio, shade, min_outer=0, extra=4):
    outer = max(width, min_outer)
    inner = int(outer * inner_ratio)
    gap = int(outer * gap_ratio)
    if not min_outer:
        outer = inner + gap + extra
    boxes = [
        _solid_border(color, outer),
        f"drawbox=x={gap}:y={gap}:w={inner}:h=ih-{gap}*2:color={shade}:t=fill",
        f"drawbox=x=iw-{gap}-{inner}:y={gap}:w={inner}:h=ih-{gap}*2:color={shade}:t=fill",
    ]
    if min_outer:
        boxes += [
            f"drawbox=x={gap}:y={gap}:w=iw-{gap}*2:h={inner}:color={shade}:t=fill",
            f"drawbox=x={gap}:y=ih-{gap}-{inner}:w=iw-{gap}*2:h={inner}:color={shade}:t=fill",
        ]
    return ",".join(boxes)


# Frame shapes drawn with drawbox when no PNG overlay is available.
# Rounded, scalloped, dashed and gradient shapes degrade to a solid border.
FRAME_SHAPE_COMMANDS = {
    "bold-classic": _solid_border,
    "rounded-thick": _solid_border,
    "neon-glow": _solid_border,
    "scalloped-edge": _solid_border,
    "dashed-fun": _solid_border,
    "gradient-glow": _solid_border,
    "double-line": lambda color, width: _double_border(color, width, 0.6, 0.2, "black@0.3"),
    "ai-generated": lambda color, width: _double_border(color, width, 0.5, 0.3, "black@0.2", min_outer=20),
}

AI_FRAME_SHAPE = "ai-generated"


def frame_border_command(frame_shape, primary_color, border_width):
    builder = FRAME_SHAPE_COMMANDS.get(frame_shape or "")
    if builder is None:
        return None
    return builder(ffmpeg_color(primary_color), int(border_width))


def ffmpeg_color(hex_color, default="0xFFFFFF"):
    """'#06B6D4' -> '0x06B6D4'; named colors pass through."""
    if not hex_color:
        return default
    value = hex_color.strip()
    if value.startswith("#"):
        return "0x" + value[1:]
    return value


# Legacy emoji -> sticker PNG in the stickers bucket, used when a sticker has no png_file
EMOJI_TO_PNG = {
    # Party
    "🎈": "fluent-balloon.png",
    "🎊": "fluent-confetti.png",
    "🎁": "fluent-gift.png",
    "🎂": "fluent-cake.png",
    "🎉": "fluent-party-popper.png",
    "🧁": "fluent-cupcake.png",
    "🍬": "fluent-candy.png",
    "🍭": "fluent-lollipop.png",
    "🎀": "fluent-ribbon.png",
    # Faces
    "😊": "fluent-smile.png",
    "😍": "fluent-heart-eyes.png",
    "🤩": "fluent-star-eyes.png",
    "😀": "fluent-grin.png",
    "😂": "fluent-joy.png",
    "☺️": "fluent-blush.png",
    "😉": "fluent-wink.png",
    "🤗": "fluent-hug.png",
    # Hearts
    "❤️": "fluent-red-heart.png",
    "❤": "fluent-red-heart.png",
    "💖": "fluent-sparkling-heart.png",
    "💝": "fluent-heart-ribbon.png",
    "💗": "fluent-growing-heart.png",
    "💕": "fluent-two-hearts.png",
    "💟": "fluent-heart-decoration.png",
    "🩷": "fluent-pink-heart.png",
    "🧡": "fluent-orange-heart.png",
    # Stars
    "🌟": "fluent-glowing-star.png",
    "⭐": "fluent-star.png",
    "✨": "fluent-sparkles.png",
    "💫": "fluent-dizzy.png",
    "💥": "fluent-collision.png",
    "🔥": "fluent-fire.png",
    # Nature
    "🌈": "fluent-rainbow.png",
    "🌞": "fluent-sun.png",
    "🌻": "fluent-sunflower.png",
    "🌷": "fluent-tulip.png",
    "🍀": "fluent-four-leaf-clover.png",
    "🦋": "fluent-butterfly.png",
    "🦄": "fluent-unicorn.png",
    "👑": "fluent-crown.png",
    # Animals
    "😻": "fluent-cat-heart.png",
    "🐶": "fluent-dog.png",
    "🐻": "fluent-bear.png",
    "🐰": "fluent-bunny.png",
    "🐼": "fluent-panda.png",
}


def sticker_png_name(sticker):
    return sticker.png_file or EMOJI_TO_PNG.get(sticker.symbol)


# Caption placement shared with the live preview: 3% from the top edge,
# 8% from the bottom edge and never above the 75% line.
TEXT_TOP_RATIO = 0.03
TEXT_BOTTOM_RATIO = 0.08
TEXT_BOTTOM_LIMIT_RATIO = 0.75


def text_y_expression(position, frame_height):
    position = getattr(position, "value", position)
    if position == "top":
        return str(round(frame_height * TEXT_TOP_RATIO))
    if position == "center":
        return "(h-text_h)/2"
    limit = round(frame_height * TEXT_BOTTOM_LIMIT_RATIO)
    offset = round(frame_height * TEXT_BOTTOM_RATIO)
    return f"max({limit}-text_h\\,h-text_h-{offset})"


def escape_drawtext(text):
    return (
        text.replace("\\", "\\\\")
        .replace("'", "'\\''")
        .replace(":", "\\:")
        .replace("%", "\\%")
        .replace("[", "\\[")
        .replace("]", "\\]")
    )


def escape_filter_path(path):
    return str(path).replace("\\", "/").replace(":", "\\:").replace("'", "\\'")
