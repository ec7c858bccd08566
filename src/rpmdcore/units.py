#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   units.py
@Time    :   2026/02/05 09:11:52
@Author  :   George Trenins
@Desc    :   Unit systems for converting run parameters given as "value unit" strings

Built on top of SymPy's physics.units system. Dynamics are carried out in the
base units of a chosen system, atomic units (ħ = e = a₀ = mₑ = 1) by default,
in which ħ need not appear in the ring-polymer frequencies.
'''


from __future__ import print_function, division, absolute_import
from scipy import constants as sc
from typing import Dict, Union, Tuple, Optional
import sympy.physics.units as u
from sympy.physics.units import Quantity

# All systems here are dimensionally consistent with SI
_SI = u.systems.SI

# Extra quantities missing in SymPy
aa = angstrom = Quantity("angstrom", abbrev="AA")
_SI.set_quantity_dimension(angstrom, u.length)
_SI.set_quantity_scale_factor(angstrom, u.meter / 10**10)

me = electron_mass = Quantity("electron_mass", abbrev="me")
_SI.set_quantity_dimension(me, u.mass)
_SI.set_quantity_scale_factor(me, sc.m_e * u.kg)

a0 = bohr_radius = Quantity("bohr_radius", abbrev="a0")
_SI.set_quantity_dimension(a0, u.length)
_SI.set_quantity_scale_factor(a0, sc.value(u'Bohr radius')*u.meter)

Eh = hartree = Quantity("hartree", abbrev="Eh")
_SI.set_quantity_dimension(hartree, u.energy)
_SI.set_quantity_scale_factor(hartree, sc.value(u'Hartree energy')*u.J)

kcal_mol = Quantity("kcal_mol")
_SI.set_quantity_dimension(kcal_mol, u.energy)
_SI.set_quantity_scale_factor(kcal_mol, sc.kilo*sc.calorie/sc.N_A * u.J)

fs = femtosecond = Quantity("femtosecond", abbrev="fs")
_SI.set_quantity_dimension(fs, u.time)
_SI.set_quantity_scale_factor(fs, sc.femto*u.second)

AVAILABLE_UNITS: Dict[str, Quantity] = {
    'angstrom': angstrom,
    'aa': aa,
    'me': me,
    'electron_mass': electron_mass,
    'a0': a0,
    'bohr': a0,
    'bohr_radius': bohr_radius,
    'Eh': Eh,
    'hartree': hartree,
    'kcal_mol': kcal_mol,
    'fs': fs,
    'femtosecond': femtosecond,
}


def _scale_factor(quantity: Quantity, base_units: Tuple[Quantity, ...]) -> float:
    """Numerical value of one `quantity` expressed in `base_units`."""
    converted = u.convert_to(1.0 * quantity, base_units).n()
    factor, _ = converted.as_coeff_Mul()
    return float(factor)


def parse_unit(name: str) -> Quantity:
    """Look up a unit first among SymPy's units, then among the extra ones defined here."""
    try:
        uobj = getattr(u, name)
    except AttributeError:
        try:
            uobj = AVAILABLE_UNITS[name]
        except KeyError as e:
            raise AttributeError(f'Unknown unit "{name}"') from e
    if not isinstance(uobj, Quantity):
        raise ValueError(f'"{name}" is not a valid unit')
    return uobj


def str2valunit(string: str) -> Tuple[float, Optional[Quantity]]:
    """Split a string of the form 'value' or 'value unit'.

    Raises:
        ValueError: if the format is invalid or the value is not numeric
        AttributeError: if the unit is unknown
    """
    string_list = string.split()
    if len(string_list) == 1:
        value, uobj = string_list[0], None
    elif len(string_list) == 2:
        value, uobj = string_list[0], parse_unit(string_list[1])
    else:
        raise ValueError("The input for string conversion must be of the form 'value' or 'value unit'")
    try:
        valnum = float(value)
    except ValueError:
        raise ValueError(f"Unable to convert '{value}' to float. Value must be a numeric string.")
    return valnum, uobj


class SI(object):
    """Base unit system using SI units.

    Attributes:
        base_units (Tuple[Quantity, ...]): metre, kilogram, second, ampere, mole, candela, kelvin
    """
    base_units: Tuple[Quantity, ...] = (u.meter, u.kilogram, u.second,
                                        u.ampere, u.mol, u.cd, u.K)

    def factor(self, quantity: Quantity) -> float:
        """Value of one `quantity` in the base units of this system."""
        return _scale_factor(quantity, self.base_units)

    def str2base(self, string: Union[str, float]) -> float:
        """Convert a 'value unit' string to the base units of this system. Bare numbers
        and strings without a unit are assumed to be in base units already.

        Example:
            >>> atomic().str2base("1.0 fs")
            41.341373...
        """
        if isinstance(string, str):
            value, unit = str2valunit(string)
            if unit is None:
                return value
            return value * self.factor(unit)
        return float(string)

    @property
    def hbar(self) -> float:
        return self.factor(u.hbar)

    @property
    def kb(self) -> float:
        return self.factor(u.boltzmann_constant)

    @property
    def amu(self) -> float:
        return self.factor(u.amu)

    def betaTemp(self, beta: float) -> float:
        """Temperature in kelvin from the reciprocal temperature β = 1/(kB T)."""
        return 1.0/(self.kb*beta)

    def tempBeta(self, T: float) -> float:
        """Reciprocal temperature β = 1/(kB T) for a temperature in kelvin."""
        return 1.0/(self.kb*T)


class atomic(SI):
    """Atomic units: ħ, e, a₀, mₑ (plus mole, candela, kelvin)."""
    base_units = (u.hbar, u.elementary_charge, a0, me, u.mol, u.cd, u.K)


class hartAng(SI):
    """Mixed Hartree-Angstrom units: ħ, e, Å, Eₕ (plus mole, candela, kelvin)."""
    base_units = (u.hbar, u.elementary_charge, aa, Eh, u.mol, u.cd, u.K)


UNIT_SYSTEMS = {
    "SI": SI,
    "atomic": atomic,
    "hartAng": hartAng,
}
