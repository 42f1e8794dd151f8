from __future__ import annotations

from typing import Optional

from math import sqrt
import numpy as np

from geoconstruct.model.geometry_primitives import Point, Vector, Circle, BoundingBox


def segment_intersection(
    p: Point,
    p2: Point,
    q: Point,
    q2: Point,
    eps: float = 1e-9
    ) -> Optional[Point]:
    """
    Intersection of the segments p->p2 and q->q2.

    Solves the 2x2 system  p + t (p2 - p) = q + u (q2 - q)  for (t, u).

    Args:
        p, p2: Endpoints of the first segment.
        q, q2: Endpoints of the second segment.
        eps: Tolerance for the determinant and for the inclusive [0, 1] tests.

    Returns:
        The hit point, or None when the segments miss each other or are
        parallel. Collinear overlapping segments are reported as None as well.
    """
    r = p2 - p
    s = q2 - q

    matrix = np.array([[r.x, -s.x], [r.y, -s.y]])
    det = -r.cross(s)
    if abs(det) < eps:
        # parallel (including possibly collinear)
        return None

    rhs = (q - p).to_array()
    t, u = np.linalg.solve(matrix, rhs)

    if not (-eps <= t <= 1.0 + eps and -eps <= u <= 1.0 + eps):
        return None
    return Point(x=float(p.x + t * r.x), y=float(p.y + t * r.y))


def line_circle_intersection(
    point: Point,
    vector: Vector,
    circle: Circle,
    *,
    as_segment: bool = False,
    eps: float = 1e-9
    ) -> list[Point]:
    """
    Compute intersection point(s) between a circle and a 2D line or line segment.

    The line is given in parametric form: P(t) = P0 + t * v, where
    P0 is a point on the line and v is the (nonzero) direction vector.
    If `as_segment=True`, the result is restricted to the segment from P0 to (P0 + v),
    i.e., only solutions with 0 <= t <= 1 are returned.

    Args:
        point: A point (x0, y0) on the line (or the start of the segment if `as_segment=True`).
        vector: The line direction vector (vx, vy). If its length is ~0, the function treats the
           "line" as the single point P0.
        circle: The circle with center (cx, cy), radius (must be non-negative).
        as_segment: If True, return only intersections whose parameter t lies in [0, 1] (within `eps`).
                    Default is False (infinite line).
        eps: Numerical tolerance for zero checks and inclusive interval tests. Default 1e-9.

    Returns:
        A list containing 0, 1, or 2 intersection points. For tangency (discriminant ~ 0),
        a single point is returned.

    Notes:
        - Solves ||P0 + t*v - C||^2 = r^2, yielding a quadratic a t^2 + b t + c = 0 where:
          a = v·v
          b = 2 v·(P0 - C)
          c = ||P0 - C||^2 - r^2
    - If `a` ~ 0, the direction is degenerate; in that case it returns [P0] if P0 lies
      on the circle (within `eps`), otherwise [].
    """
    x0, y0 = point.x, point.y
    vx, vy = vector.x, vector.y
    cx, cy = circle.center.x, circle.center.y
    r = circle.radius
    a = vx * vx + vy * vy

    # degenerate direction: treat as point-circle intersection
    if abs(a) < eps:
        on_circle = abs((x0 - cx) ** 2 + (y0 - cy) ** 2 - r ** 2) <= eps
        return [Point(x=x0, y=y0)] if on_circle else []

    b = 2.0 * (vx * (x0 - cx) + vy * (y0 - cy))
    c = (x0 - cx) ** 2 + (y0 - cy) ** 2 - r * r
    disc = b * b - 4.0 * a * c

    # No real intersection
    if disc < -eps:
        return []

    # Tangent
    if abs(disc) <= eps:
        t = -b / (2.0 * a)

        if as_segment and not (0.0 - eps <= t <= 1.0 + eps):
            return []
        return [Point(x=x0+t*vx, y=y0+t*vy)]

    sqrt_disc = sqrt(max(0.0, disc))
    t1 = (-b - sqrt_disc) / (2.0 * a)
    t2 = (-b + sqrt_disc) / (2.0 * a)

    ts = [t1, t2]
    if as_segment:
        ts = [t for t in ts if 0.0 - eps <= t <= 1.0 + eps]

    return [Point(x=x0+t*vx, y=y0+t*vy) for t in ts]


def segment_circle_intersections(
    p1: Point,
    p2: Point,
    center: Point,
    r: float,
    eps: float = 1e-9
    ) -> list[Point]:
    """Zero, one or two hits of the segment p1->p2 with a circle."""
    return line_circle_intersection(p1, p2 - p1, Circle(center=center, radius=r), as_segment=True, eps=eps)


def circle_circle_intersections(
    c0: Point,
    r0: float,
    c1: Point,
    r1: float,
    eps: float = 1e-9
    ) -> list[Point]:
    """
    Intersection of two circles via their radical line.

    Returns nothing for concentric, disjoint or strictly nested circles and a
    single point when the circles touch (externally or internally).
    """
    d = c0.distance_to(c1)
    if d < eps:
        return []
    if d > r0 + r1 + eps:
        return []
    if d < abs(r0 - r1) - eps:
        return []

    # Distance from c0 to the radical line along c0->c1
    a = (r0 * r0 - r1 * r1 + d * d) / (2.0 * d)
    h2 = r0 * r0 - a * a

    direction = (c1 - c0) / d
    mid = c0 + direction * a

    if h2 <= eps:
        return [mid]

    h = sqrt(h2)
    offset = direction.perpendicular() * h
    return [mid + offset, mid - offset]


def project_point_onto_line(
    point: Point,
    a: Point,
    b: Point,
    *,
    clamp: bool = True,
    eps: float = 1e-9
    ) -> Optional[Point]:
    """
    Foot of the perpendicular from `point` onto the line through a and b.

    With `clamp=True` the parameter is limited to [0, 1] so the result stays on
    the segment a-b. Returns None for a degenerate (zero length) line.
    """
    v = b - a
    denom = v.dot(v)
    if denom < eps:
        return None
    t = (point - a).dot(v) / denom
    if clamp:
        t = min(1.0, max(0.0, t))
    return a + v * t


def point_segment_distance(point: Point, a: Point, b: Point) -> float:
    """Shortest distance from a point to the segment a-b."""
    foot = project_point_onto_line(point, a, b, clamp=True)
    if foot is None:
        return point.distance_to(a)
    return point.distance_to(foot)


def point_line_distance(point: Point, a: Point, b: Point) -> float:
    """Distance from a point to the infinite line through a and b."""
    foot = project_point_onto_line(point, a, b, clamp=False)
    if foot is None:
        return point.distance_to(a)
    return point.distance_to(foot)


def clip_line_to_bounding_box(
    p1: Point,
    p2: Point,
    box: BoundingBox,
    *,
    eps: float = 1e-9,
    merge_eps: float = 1e-6
    ) -> tuple[Point, Point]:
    """
    Clip the infinite line through p1 and p2 to an axis-aligned box.

    Up to four crossings with the box edges are collected and near-identical
    hits merged. With at least two distinct hits the two extreme ones are
    returned, ordered along the dominant axis of the line (x if |dx| >= |dy|,
    else y). Otherwise p1 and p2 are returned unchanged.
    """
    dx = p2.x - p1.x
    dy = p2.y - p1.y

    candidates: list[Point] = []
    if abs(dx) > eps:
        for x in (box.xmin, box.xmax):
            t = (x - p1.x) / dx
            candidates.append(Point(x=x, y=p1.y + t * dy))
    if abs(dy) > eps:
        for y in (box.ymin, box.ymax):
            t = (y - p1.y) / dy
            candidates.append(Point(x=p1.x + t * dx, y=y))
    candidates = [c for c in candidates if box.contains(c, eps)]

    hits: list[Point] = []
    for c in candidates:
        if all(c.distance_to(h) >= merge_eps for h in hits):
            hits.append(c)

    if len(hits) < 2:
        return p1, p2

    if abs(dx) >= abs(dy):
        hits.sort(key=lambda h: h.x)
    else:
        hits.sort(key=lambda h: h.y)
    return hits[0], hits[-1]
