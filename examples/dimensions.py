import ezdim


def main() -> None:
    drawing = ezdim.read("examples/data/bracket.dxf")
    print(drawing.summary())

    bbox = drawing.bounding_box()
    print(f"extents: {bbox.width:g} x {bbox.height:g}")

    dims = drawing.dimensions()
    print(f"dimension count: {len(dims)}")
    for dim in dims:
        print(f"{dim.kind:<9} {dim.label}")


if __name__ == "__main__":
    main()
