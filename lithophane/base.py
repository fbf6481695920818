"""Lamp base: a solid block with a slot for the panel and an LED hole."""
import logging

from .geometry import TriangleBuffer

logger = logging.getLogger(__name__)


def add_rectangle(buf, v1, v2, v3, v4):
    """Planar quad split as (v1,v2,v3) + (v1,v3,v4)."""
    buf.add(v1, v2, v3)
    buf.add(v1, v3, v4)


def add_slot_floor(buf, slot_half_width, front_y, back_y, z, led_radius):
    """
    Slot floor around the LED hole. The hole is left as the square gap
    between four rectangles, centred between the slot's front and back.
    """
    cy = (front_y + back_y) / 2
    r = led_radius
    # left and right of the hole
    add_rectangle(buf, (-slot_half_width, back_y, z), (-r, back_y, z), (-r, front_y, z), (-slot_half_width, front_y, z))
    add_rectangle(buf, (r, back_y, z), (slot_half_width, back_y, z), (slot_half_width, front_y, z), (r, front_y, z))
    # in front of and behind the hole
    add_rectangle(buf, (-r, cy + r, z), (r, cy + r, z), (r, front_y, z), (-r, front_y, z))
    add_rectangle(buf, (-r, back_y, z), (r, back_y, z), (r, cy - r, z), (-r, cy - r, z))


def generate_base_geometry(dimensions, base):
    """
    Triangles for the base described by a BaseSettings. The top face sits at
    z=0 and the block extends down to z=-base.height. dimensions is the panel
    size the base was derived from; the geometry depends only on base.
    """
    buf = TriangleBuffer()
    hw, hd = base.width / 2, base.depth / 2
    sw = base.slot_width / 2
    top, bottom = 0.0, -base.height
    front = hd - base.slot_depth / 2
    back = -hd + front
    slot_bottom = top - base.slot_depth

    # === TOP SURFACE ===
    add_rectangle(buf, (-hw, front, top), (hw, front, top), (hw, hd, top), (-hw, hd, top))
    add_rectangle(buf, (-hw, -hd, top), (hw, -hd, top), (hw, back, top), (-hw, back, top))
    add_rectangle(buf, (-hw, back, top), (-sw, back, top), (-sw, front, top), (-hw, front, top))
    add_rectangle(buf, (sw, back, top), (hw, back, top), (hw, front, top), (sw, front, top))

    # === SLOT ===
    add_rectangle(buf, (-sw, back, top), (sw, back, top), (sw, back, slot_bottom), (-sw, back, slot_bottom))
    add_rectangle(buf, (sw, front, top), (-sw, front, top), (-sw, front, slot_bottom), (sw, front, slot_bottom))
    add_rectangle(buf, (-sw, front, top), (-sw, back, top), (-sw, back, slot_bottom), (-sw, front, slot_bottom))
    add_rectangle(buf, (sw, back, top), (sw, front, top), (sw, front, slot_bottom), (sw, back, slot_bottom))
    add_slot_floor(buf, sw, front, back, slot_bottom, base.led_hole_diameter / 2)

    # === EXTERIOR ===
    add_rectangle(buf, (-hw, hd, top), (hw, hd, top), (hw, hd, bottom), (-hw, hd, bottom))
    add_rectangle(buf, (hw, -hd, top), (-hw, -hd, top), (-hw, -hd, bottom), (hw, -hd, bottom))
    add_rectangle(buf, (-hw, -hd, top), (-hw, hd, top), (-hw, hd, bottom), (-hw, -hd, bottom))
    add_rectangle(buf, (hw, hd, top), (hw, -hd, top), (hw, -hd, bottom), (hw, hd, bottom))
    add_rectangle(buf, (-hw, -hd, bottom), (hw, -hd, bottom), (hw, hd, bottom), (-hw, hd, bottom))

    tris = buf.build()
    logger.debug("Base %.1fx%.1fx%.1fmm for %sx%smm panel: %d triangles",
                 base.width, base.depth, base.height, dimensions.width, dimensions.height, len(tris))
    return tris
