from collections.abc import Callable
from pathlib import Path

import pytest

from bifgen import BuiltinGenerator, GeneratorConfig, GeneratorPaths

FOO_BUILTINS = """\
; smallest possible builtin file
[always]
  const int __builtin_foo (int);
    FOO foo_insn {}
"""

FOO_OVERLOADS = """\
[OVLD_FOO, vec_foo, __builtin_vec_foo]
  int __builtin_vec_foo (int);
    FOO
"""

VECTOR_BUILTINS = """\
; altivec subset

[altivec]
  const vsc __builtin_altivec_vaddubm (vsc, vsc);
    VADDUBM addv16qi3 {}
  const vuc __builtin_altivec_vsldoi_16qi (vuc, vuc, const int<4>);
    VSLDOI_16QI altivec_vsldoi_v16qi {}
  pure vsi __builtin_altivec_lvx (signed long long, void *);
    LVX altivec_lvx_v4si {ldvec}

[power8-vector]
  const vsll __builtin_altivec_vmaxsd (vsll, vsll);
    VMAXSD smaxv2di3 {}
  fpmath double __builtin_vsx_xsmaxdp (double, double);
    XSMAXDP smaxdf3 {}
"""

VECTOR_OVERLOADS = """\
[VEC_ADD, vec_add, __builtin_vec_add]
  vsc __builtin_vec_add (vsc, vsc);
    VADDUBM
[VEC_MAX, vec_max, __builtin_vec_max]
  vsll __builtin_vec_max (vsll, vsll);
    VMAXSD
  double __builtin_vec_max (double, double);
    XSMAXDP
"""


@pytest.fixture
def generator() -> BuiltinGenerator:
    return BuiltinGenerator(GeneratorConfig())


@pytest.fixture
def write_sources(tmp_path: Path) -> Callable[..., GeneratorPaths]:
    def _write_sources(builtins: str = FOO_BUILTINS,
                       overloads: str = FOO_OVERLOADS) -> GeneratorPaths:
        bif = tmp_path / "rs6000-builtin-new.def"
        ovld = tmp_path / "rs6000-overload.def"
        bif.write_text(builtins, encoding="utf-8")
        ovld.write_text(overloads, encoding="utf-8")
        out = tmp_path / "out"
        out.mkdir(exist_ok=True)
        return GeneratorPaths(bif, ovld, out / "rs6000-builtins.h",
                              out / "rs6000-builtins.c", out / "rs6000-vecdefines.h")

    return _write_sources


@pytest.fixture
def vector_model(generator: BuiltinGenerator):
    return generator.parse_text(VECTOR_BUILTINS, VECTOR_OVERLOADS,
                                "bif.def", "ovld.def")
