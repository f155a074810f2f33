"""Tests for primitive geometry parsing."""

import pytest

from lxscene.errors import SceneValueError, StructuralError
from lxscene.primitive_parser import parse_primitive
from lxscene.reader import AttributeReader, load_document


class _Recorder:
    def __init__(self):
        self.codes: list[str] = []

    def __call__(self, code: str, message: str) -> None:
        self.codes.append(code)


def _parse(body: str, warn=None):
    node = load_document(f'<primitive id="p">{body}</primitive>')
    return parse_primitive(AttributeReader(), node, "p", warn or _Recorder())


def _patch(npoints_u: int, npoints_v: int, n_points: int, extra: str = "") -> str:
    points = "".join(
        f'<controlpoint xx="{i}" yy="{i * 2}" zz="0"/>' for i in range(n_points)
    )
    return (
        f'<patch npointsU="{npoints_u}" npointsV="{npoints_v}" npartsU="10" npartsV="20">'
        f"{points}{extra}</patch>"
    )


class TestPrimitiveShape:
    def test_no_geometry(self):
        with pytest.raises(StructuralError, match="exactly 1 primitive type"):
            _parse("")

    def test_two_geometries(self):
        with pytest.raises(StructuralError, match="exactly 1 primitive type"):
            _parse('<sphere radius="1" slices="8" stacks="8"/><plane npartsU="1" npartsV="1"/>')

    def test_unknown_geometry(self):
        with pytest.raises(StructuralError, match="'p'"):
            _parse('<cube side="1"/>')


class TestRectangle:
    def test_valid(self):
        spec = _parse('<rectangle x1="-1" y1="-2" x2="1" y2="2"/>')
        assert spec.kind == "rectangle"
        assert (spec.x1, spec.y1, spec.x2, spec.y2) == (-1.0, -2.0, 1.0, 2.0)

    def test_degenerate_x_names_x2(self):
        with pytest.raises(SceneValueError, match=r"invalid x2=1 .*x2 > x1"):
            _parse('<rectangle x1="1" y1="0" x2="1" y2="2"/>')

    def test_inverted_y_names_y2(self):
        with pytest.raises(SceneValueError, match=r"invalid y2=-1 .*y2 > y1"):
            _parse('<rectangle x1="0" y1="0" x2="1" y2="-1"/>')

    def test_missing_coordinate(self):
        with pytest.raises(SceneValueError, match="unable to parse y1"):
            _parse('<rectangle x1="0" x2="1" y2="1"/>')


class TestTriangle:
    def test_vertices(self):
        spec = _parse(
            '<triangle x1="0" y1="0" z1="0" x2="1" y2="0" z2="0" x3="0" y3="1" z3="0"/>'
        )
        assert spec.p1 == (0.0, 0.0, 0.0)
        assert spec.p2 == (1.0, 0.0, 0.0)
        assert spec.p3 == (0.0, 1.0, 0.0)

    def test_missing_vertex_coordinate(self):
        with pytest.raises(SceneValueError, match="unable to parse z3"):
            _parse('<triangle x1="0" y1="0" z1="0" x2="1" y2="0" z2="0" x3="0" y3="1"/>')


class TestQuadrics:
    @pytest.mark.parametrize("kind", ["cylinder", "cylinder2"])
    def test_cylinder(self, kind):
        spec = _parse(f'<{kind} base="1" top="0.5" height="2" slices="16" stacks="4"/>')
        assert spec.kind == kind
        assert (spec.base, spec.top, spec.height) == (1.0, 0.5, 2.0)
        assert (spec.slices, spec.stacks) == (16, 4)

    def test_cylinder_needs_three_slices(self):
        with pytest.raises(SceneValueError, match=r"invalid slices=2 .*>= 3"):
            _parse('<cylinder base="1" top="1" height="1" slices="2" stacks="1"/>')

    def test_cylinder_height_positive(self):
        with pytest.raises(SceneValueError, match="invalid height=0"):
            _parse('<cylinder base="1" top="1" height="0" slices="8" stacks="1"/>')

    def test_cylinder_negative_radius(self):
        with pytest.raises(SceneValueError, match="invalid base=-1"):
            _parse('<cylinder base="-1" top="1" height="1" slices="8" stacks="1"/>')

    def test_fractional_count(self):
        with pytest.raises(SceneValueError, match="expected an integer"):
            _parse('<sphere radius="1" slices="8.5" stacks="4"/>')

    def test_sphere(self):
        spec = _parse('<sphere radius="2" slices="12" stacks="6"/>')
        assert (spec.radius, spec.slices, spec.stacks) == (2.0, 12, 6)

    def test_sphere_needs_one_stack(self):
        with pytest.raises(SceneValueError, match="invalid stacks=0"):
            _parse('<sphere radius="2" slices="12" stacks="0"/>')

    def test_torus(self):
        spec = _parse('<torus inner="0.5" outer="2" slices="10" loops="20"/>')
        assert (spec.inner, spec.outer, spec.slices, spec.loops) == (0.5, 2.0, 10, 20)

    def test_torus_missing_loops(self):
        with pytest.raises(SceneValueError, match="unable to parse loops"):
            _parse('<torus inner="0.5" outer="2" slices="10"/>')


class TestSurfaces:
    def test_plane(self):
        spec = _parse('<plane npartsU="5" npartsV="7"/>')
        assert (spec.nparts_u, spec.nparts_v) == (5, 7)

    def test_patch_grid_is_row_major(self):
        spec = _parse(_patch(2, 3, 6))
        assert (spec.npoints_u, spec.npoints_v) == (2, 3)
        assert (spec.nparts_u, spec.nparts_v) == (10, 20)
        assert len(spec.control_points) == 2
        assert [len(row) for row in spec.control_points] == [3, 3]
        assert spec.control_points[0][0] == (0.0, 0.0, 0.0, 1.0)
        assert spec.control_points[1][0] == (3.0, 6.0, 0.0, 1.0)
        assert all(point[3] == 1.0 for row in spec.control_points for point in row)

    def test_patch_point_count_mismatch(self):
        with pytest.raises(SceneValueError, match=r"expected 6 \(npointsU \* npointsV\), got 5"):
            _parse(_patch(2, 3, 5))

    def test_patch_foreign_child_warns(self):
        recorder = _Recorder()
        spec = _parse(_patch(1, 2, 2, extra="<weight w='1'/>"), recorder)
        assert recorder.codes == ["W02"]
        assert len(spec.control_points[0]) == 2

    def test_patch_control_point_needs_coordinates(self):
        body = '<patch npointsU="1" npointsV="1" npartsU="1" npartsV="1"><controlpoint xx="0" yy="0"/></patch>'
        with pytest.raises(SceneValueError, match="unable to parse zz"):
            _parse(body)
