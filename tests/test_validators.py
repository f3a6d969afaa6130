"""
Tests unitaires des validateurs et masques de formulaire.
"""

from eventhub.validators import (
    is_valid_cnpj,
    is_valid_cpf,
    is_valid_email,
    is_valid_phone,
    is_valid_slug,
    mask_cnpj,
    mask_cpf,
    mask_phone,
    only_digits,
)


# --- CPF ---

def test_cpf_valide_avec_masque():
    assert is_valid_cpf("529.982.247-25") is True


def test_cpf_valide_sans_masque():
    assert is_valid_cpf("52998224725") is True


def test_cpf_chiffre_de_controle_faux():
    assert is_valid_cpf("529.982.247-26") is False


def test_cpf_sequence_repetee_rejetee():
    """111.111.111-11 a des chiffres de contrôle cohérents mais reste invalide."""
    assert is_valid_cpf("111.111.111-11") is False


def test_cpf_longueur_incorrecte():
    assert is_valid_cpf("1234567890") is False
    assert is_valid_cpf("") is False


# --- CNPJ ---

def test_cnpj_valide():
    assert is_valid_cnpj("11.222.333/0001-81") is True
    assert is_valid_cnpj("11222333000181") is True


def test_cnpj_invalide():
    assert is_valid_cnpj("11.222.333/0001-82") is False
    assert is_valid_cnpj("00000000000000") is False
    assert is_valid_cnpj("123") is False


# --- E-mail, téléphone, slug ---

def test_email():
    assert is_valid_email("ana@escola.com.br") is True
    assert is_valid_email("ana@escola") is False
    assert is_valid_email("ana escola@x.com") is False
    assert is_valid_email("ana..souza@escola.com.br") is False
    assert is_valid_email("") is False


def test_telephone_fixe_et_mobile():
    assert is_valid_phone("(11) 3456-7890") is True
    assert is_valid_phone("(11) 98765-4321") is True
    assert is_valid_phone("98765-4321") is False


def test_slug():
    assert is_valid_slug("instituto-demo") is True
    assert is_valid_slug("Instituto Demo") is False
    assert is_valid_slug("demo-") is False


# --- Masques ---

def test_only_digits():
    assert only_digits("529.982.247-25") == "52998224725"
    assert only_digits(None) == ""


def test_mask_cpf_progressif():
    assert mask_cpf("529") == "529"
    assert mask_cpf("529982") == "529.982"
    assert mask_cpf("529982247") == "529.982.247"
    assert mask_cpf("52998224725") == "529.982.247-25"


def test_mask_cnpj():
    assert mask_cnpj("11222333000181") == "11.222.333/0001-81"


def test_mask_phone():
    assert mask_phone("11987654321") == "(11) 98765-4321"
