import ezdim


result = ezdim.to_dxf(
    "examples/data/bracket.dxf",
    "/tmp/bracket_annotated.dxf",
    config=ezdim.DimensionConfig.from_names("linear angular radius"),
    dxf_version="R12",
)
print(result)
